"""Voice session persistence helpers."""
from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.voice_session import SessionStatus, VoiceSession


async def create_session(
    session: AsyncSession,
    *,
    agent_id: str,
    user_id: str,
    room_name: str,
    started_at: datetime,
) -> VoiceSession:
    """Persist a new session in the connecting state."""

    voice_session = VoiceSession(
        id=str(uuid4()),
        agent_id=agent_id,
        user_id=user_id,
        room_name=room_name,
        status=SessionStatus.CONNECTING,
        started_at=started_at,
        created_at=started_at,
    )
    session.add(voice_session)
    await session.flush()
    return voice_session


async def get_owned(session: AsyncSession, *, session_id: str, user_id: str) -> VoiceSession | None:
    """Return a session only when it belongs to the given user."""

    stmt: Select[tuple[VoiceSession]] = select(VoiceSession).where(
        VoiceSession.id == session_id,
        VoiceSession.user_id == user_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def mark_ended(
    session: AsyncSession,
    *,
    session_id: str,
    user_id: str,
    ended_at: datetime,
    duration_seconds: int,
    transcript: str | None,
    sentiment: str,
    intent: str | None,
    language: str,
) -> bool:
    """Close an open session; return False when it was already ended."""

    stmt = (
        update(VoiceSession)
        .where(
            VoiceSession.id == session_id,
            VoiceSession.user_id == user_id,
            VoiceSession.status != SessionStatus.ENDED,
        )
        .values(
            status=SessionStatus.ENDED,
            ended_at=ended_at,
            duration_seconds=duration_seconds,
            transcript=transcript,
            sentiment=sentiment,
            intent=intent,
            language=language,
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount > 0
