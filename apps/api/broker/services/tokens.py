"""Room token issuance for voice agents."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from ..core.config import SigningConfig
from ..core.errors import BrokerError, StoreError
from ..models.agent import Agent
from ..schemas import sessions as schemas
from . import rtc
from .identity import CallerIdentity, IdentityResolver, authenticate
from .session_store import SessionStore

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DEFAULT_PARTICIPANT_NAME = "User"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Authorize a caller against an agent and hand out a room token."""

    def __init__(
        self,
        *,
        identity: IdentityResolver,
        store: SessionStore,
        signing: SigningConfig,
        default_participant_name: str = DEFAULT_PARTICIPANT_NAME,
        clock: Clock = utcnow,
    ) -> None:
        self._identity = identity
        self._store = store
        self._signing = signing
        self._default_participant_name = default_participant_name
        self._clock = clock

    async def issue(
        self,
        authorization: str | None,
        payload: schemas.IssueTokenRequest,
    ) -> schemas.IssueTokenResponse:
        """Mint a token for the caller's agent and open a session record.

        A failed session insert does not fail issuance: the token alone is
        enough to join the room, so the response simply omits ``sessionId``.
        """

        caller = await self.authorize(authorization)
        return await self.issue_for(caller, payload)

    async def authorize(self, authorization: str | None) -> CallerIdentity:
        """Check the signing configuration, then resolve the caller."""

        if not self._signing.is_complete:
            logger.error("Missing LiveKit configuration")
            raise BrokerError.invalid_argument("LiveKit configuration missing")

        caller = await authenticate(self._identity, authorization)
        logger.info("Authenticated user: %s", caller.id)
        return caller

    async def issue_for(
        self,
        caller: CallerIdentity,
        payload: schemas.IssueTokenRequest,
    ) -> schemas.IssueTokenResponse:
        if not payload.agent_id:
            raise BrokerError.invalid_argument("Agent ID is required")

        agent = await self._load_agent(payload.agent_id, caller.id)

        now = self._clock()
        room_name = payload.room_name or room_name_for(payload.agent_id, now)
        identity = f"user-{caller.id}"
        display_name = payload.participant_name or self._default_participant_name

        token = rtc.sign_access_token(
            self._signing.api_key,
            self._signing.api_secret,
            room_name,
            identity,
            display_name,
            int(now.timestamp()),
        )
        logger.info("Generated token for room: %s", room_name)

        session_id: str | None = None
        try:
            voice_session = await self._store.create_session(
                agent_id=agent.id,
                user_id=caller.id,
                room_name=room_name,
                started_at=now,
            )
            session_id = voice_session.id
            logger.info("Created voice session: %s", session_id)
        except StoreError:
            logger.exception("Session creation failed for room %s", room_name)

        extra = {"session_id": session_id} if session_id is not None else {}
        return schemas.IssueTokenResponse(
            token=token,
            url=self._signing.url,
            room_name=room_name,
            agent=agent_summary(agent),
            **extra,
        )

    async def _load_agent(self, agent_id: str, user_id: str) -> Agent:
        try:
            agent = await self._store.get_agent(agent_id=agent_id, user_id=user_id)
        except StoreError:
            logger.exception("Agent lookup error")
            agent = None
        if agent is None:
            # Missing and foreign agents are reported identically.
            raise BrokerError.not_found("Agent not found or unauthorized")
        logger.info("Found agent: %s", agent.name)
        return agent


def room_name_for(agent_id: str, now: datetime) -> str:
    """Return a room name that is unique per millisecond of issuance."""

    millis = (now - EPOCH) // timedelta(milliseconds=1)
    return f"agent-{agent_id}-{millis}"


def agent_summary(agent: Agent) -> schemas.AgentSummary:
    return schemas.AgentSummary(
        id=agent.id,
        name=agent.name,
        persona_name=agent.persona_name,
        system_prompt=agent.system_prompt,
        voice_gender=agent.voice_gender,
        voice_accent=agent.voice_accent,
    )
