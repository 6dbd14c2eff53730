"""Datastore access for agents, voice sessions and call logs."""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import StoreError
from ..models.agent import Agent
from ..models.call_log import CallOutcome
from ..models.voice_session import VoiceSession
from ..repositories import agents as agents_repo
from ..repositories import call_logs as call_logs_repo
from ..repositories import voice_sessions as sessions_repo

# asyncpg surfaces refused or dropped connections and connect timeouts as
# OSError/TimeoutError without SQLAlchemy wrapping them.
DATASTORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class SessionStore(Protocol):
    async def get_agent(self, *, agent_id: str, user_id: str) -> Agent | None: ...

    async def create_session(
        self, *, agent_id: str, user_id: str, room_name: str, started_at: datetime
    ) -> VoiceSession: ...

    async def get_session(self, *, session_id: str, user_id: str) -> VoiceSession | None: ...

    async def end_session(
        self,
        *,
        session_id: str,
        user_id: str,
        ended_at: datetime,
        duration_seconds: int,
        transcript: str | None,
        sentiment: str,
        intent: str | None,
        language: str,
    ) -> bool: ...

    async def create_call_log(
        self,
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
    ) -> str: ...


class SqlSessionStore:
    """SessionStore backed by SQLAlchemy; every call is its own transaction."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def get_agent(self, *, agent_id: str, user_id: str) -> Agent | None:
        try:
            async with self._sessionmaker() as session:
                return await agents_repo.get_owned(session, agent_id=agent_id, user_id=user_id)
        except DATASTORE_ERRORS as exc:
            raise StoreError("Agent lookup failed") from exc

    async def create_session(
        self, *, agent_id: str, user_id: str, room_name: str, started_at: datetime
    ) -> VoiceSession:
        try:
            async with self._sessionmaker() as session, session.begin():
                return await sessions_repo.create_session(
                    session,
                    agent_id=agent_id,
                    user_id=user_id,
                    room_name=room_name,
                    started_at=started_at,
                )
        except DATASTORE_ERRORS as exc:
            raise StoreError("Session insert failed") from exc

    async def get_session(self, *, session_id: str, user_id: str) -> VoiceSession | None:
        try:
            async with self._sessionmaker() as session:
                return await sessions_repo.get_owned(session, session_id=session_id, user_id=user_id)
        except DATASTORE_ERRORS as exc:
            raise StoreError("Session lookup failed") from exc

    async def end_session(
        self,
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
        try:
            async with self._sessionmaker() as session, session.begin():
                return await sessions_repo.mark_ended(
                    session,
                    session_id=session_id,
                    user_id=user_id,
                    ended_at=ended_at,
                    duration_seconds=duration_seconds,
                    transcript=transcript,
                    sentiment=sentiment,
                    intent=intent,
                    language=language,
                )
        except DATASTORE_ERRORS as exc:
            raise StoreError("Session update failed") from exc

    async def create_call_log(
        self,
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
        try:
            async with self._sessionmaker() as session, session.begin():
                return await call_logs_repo.create_call_log(
                    session,
                    agent_id=agent_id,
                    user_id=user_id,
                    duration_seconds=duration_seconds,
                    sentiment=sentiment,
                    outcome=outcome,
                    intent=intent,
                    language=language,
                    transcript=transcript,
                    customer_phone=customer_phone,
                    created_at=created_at,
                )
        except (*DATASTORE_ERRORS, ValueError) as exc:
            # ValueError covers sentiments outside the call_sentiment enum.
            raise StoreError("Call log insert failed") from exc
