"""Voice session finalization and call accounting."""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from ..core.errors import BrokerError, StoreError
from ..models.call_log import CallOutcome
from ..models.voice_session import SessionStatus
from ..schemas import sessions as schemas
from .identity import CallerIdentity, IdentityResolver, authenticate
from .session_store import SessionStore
from .tokens import Clock, utcnow

logger = logging.getLogger(__name__)

DEFAULT_SENTIMENT = "neutral"
DEFAULT_LANGUAGE = "English"


class SessionFinalizer:
    """Close a caller's voice session and append its call log."""

    def __init__(self, *, identity: IdentityResolver, store: SessionStore, clock: Clock = utcnow) -> None:
        self._identity = identity
        self._store = store
        self._clock = clock

    async def finalize(
        self,
        authorization: str | None,
        payload: schemas.EndSessionRequest,
    ) -> schemas.EndSessionResponse:
        """End the session and return its server-computed duration.

        The session update is authoritative and its failure is fatal. The call
        log that follows is best-effort: once the session is closed a failed
        insert is only logged.
        """

        caller = await self.authorize(authorization)
        return await self.finalize_for(caller, payload)

    async def authorize(self, authorization: str | None) -> CallerIdentity:
        return await authenticate(self._identity, authorization)

    async def finalize_for(
        self,
        caller: CallerIdentity,
        payload: schemas.EndSessionRequest,
    ) -> schemas.EndSessionResponse:
        if not payload.session_id:
            raise BrokerError.invalid_argument("Session ID is required")

        logger.info("Ending voice session: %s", payload.session_id)

        try:
            voice_session = await self._store.get_session(session_id=payload.session_id, user_id=caller.id)
        except StoreError:
            logger.exception("Session lookup error")
            voice_session = None
        if voice_session is None:
            raise BrokerError.not_found("Session not found")
        if voice_session.status == SessionStatus.ENDED:
            raise BrokerError.invalid_argument("Session already ended")

        ended_at = self._clock()
        duration_seconds = calculate_duration(voice_session.started_at, ended_at)

        transcript = payload.transcript or None
        sentiment = payload.sentiment or DEFAULT_SENTIMENT
        intent = payload.intent or None
        language = payload.language or DEFAULT_LANGUAGE

        try:
            updated = await self._store.end_session(
                session_id=voice_session.id,
                user_id=caller.id,
                ended_at=ended_at,
                duration_seconds=duration_seconds,
                transcript=transcript,
                sentiment=sentiment,
                intent=intent,
                language=language,
            )
        except StoreError as exc:
            logger.exception("Session update error")
            raise BrokerError.internal("Failed to update session") from exc
        if not updated:
            # Another request finalized the session between our read and write.
            raise BrokerError.invalid_argument("Session already ended")

        try:
            await self._store.create_call_log(
                agent_id=voice_session.agent_id,
                user_id=caller.id,
                duration_seconds=duration_seconds,
                sentiment=sentiment,
                outcome=CallOutcome.RESOLVED,
                intent=intent,
                language=language,
                transcript=transcript,
                customer_phone=voice_session.customer_phone,
                created_at=ended_at,
            )
        except StoreError:
            logger.exception("Call log creation error for session %s", voice_session.id)

        logger.info("Voice session %s ended, duration: %s seconds", voice_session.id, duration_seconds)
        return schemas.EndSessionResponse(success=True, duration_seconds=duration_seconds)


def calculate_duration(started_at: datetime, ended_at: datetime) -> int:
    """Return elapsed whole seconds, rounding half up and never negative."""

    elapsed = (_ensure_tz(ended_at) - _ensure_tz(started_at)).total_seconds()
    if elapsed < 0:
        logger.warning("Session end precedes start by %.3f seconds", -elapsed)
        return 0
    return int(math.floor(elapsed + 0.5))


def _ensure_tz(value: datetime) -> datetime:
    """Ensure the provided datetime is timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
