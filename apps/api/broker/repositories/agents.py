"""Agent repository helpers."""
from __future__ import annotations

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.agent import Agent


async def get_owned(session: AsyncSession, *, agent_id: str, user_id: str) -> Agent | None:
    """Return the agent only when it belongs to the given user."""

    stmt: Select[tuple[Agent]] = select(Agent).where(Agent.id == agent_id, Agent.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
