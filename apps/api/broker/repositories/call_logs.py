"""Call log repository helpers."""
from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.call_log import CallLog, CallOutcome, CallSentiment


async def create_call_log(
    session: AsyncSession,
    *,
    agent_id: str,
    user_id: str,
    duration_seconds: int,
    sentiment: str,
    outcome: CallOutcome,
    intent: str | None,
    language: str,
    transcript: str | None,
    customer_phone: str | None,
    created_at: datetime,
) -> str:
    """Append a call log row and return its identifier."""

    call_log = CallLog(
        id=str(uuid4()),
        agent_id=agent_id,
        user_id=user_id,
        duration_seconds=duration_seconds,
        sentiment=CallSentiment(sentiment),
        outcome=outcome,
        intent=intent,
        language=language,
        transcript=transcript,
        customer_phone=customer_phone,
        created_at=created_at,
    )
    session.add(call_log)
    await session.flush()
    return call_log.id
