"""Tests for session finalization and duration accounting."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from broker.core.errors import BrokerError, ErrorKind
from broker.models.call_log import CallOutcome
from broker.models.voice_session import SessionStatus
from broker.schemas import sessions as schemas
from broker.services import sessions as sessions_service
from broker.services.sessions import SessionFinalizer
from fakes import T0


def _finalizer(identity, store, ended_at: datetime) -> SessionFinalizer:
    return SessionFinalizer(identity=identity, store=store, clock=lambda: ended_at)


@pytest.mark.asyncio
async def test_finalize_computes_duration_and_closes_session(identity, store):
    store.add_session("session-1", "alice", started_at=T0, customer_phone="+911234567890")
    ended_at = T0 + timedelta(seconds=125.4)
    finalizer = _finalizer(identity, store, ended_at)

    response = await finalizer.finalize(
        "Bearer token-alice",
        schemas.EndSessionRequest(
            session_id="session-1",
            transcript="hello",
            sentiment="positive",
            intent="balance",
            language="Hindi",
        ),
    )

    assert response.success is True
    assert response.duration_seconds == 125

    voice_session = store.sessions["session-1"]
    assert voice_session.status is SessionStatus.ENDED
    assert voice_session.ended_at == ended_at
    assert voice_session.duration_seconds == 125
    assert voice_session.transcript == "hello"
    assert voice_session.sentiment == "positive"
    assert voice_session.intent == "balance"
    assert voice_session.language == "Hindi"

    assert store.call_logs == [
        {
            "outcome": CallOutcome.RESOLVED,
            "agent_id": "agent-1",
            "user_id": "alice",
            "duration_seconds": 125,
            "sentiment": "positive",
            "intent": "balance",
            "language": "Hindi",
            "transcript": "hello",
            "customer_phone": "+911234567890",
            "created_at": ended_at,
        }
    ]


@pytest.mark.asyncio
async def test_finalize_defaults_sentiment_and_language(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    finalizer = _finalizer(identity, store, T0 + timedelta(seconds=30))

    await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest(session_id="session-1"))

    voice_session = store.sessions["session-1"]
    assert voice_session.sentiment == "neutral"
    assert voice_session.language == "English"
    assert voice_session.transcript is None
    assert voice_session.intent is None
    assert store.call_logs[0]["sentiment"] == "neutral"
    assert store.call_logs[0]["language"] == "English"


@pytest.mark.asyncio
async def test_finalize_from_active_state_is_allowed(identity, store):
    store.add_session("session-1", "alice", started_at=T0, status=SessionStatus.ACTIVE)
    finalizer = _finalizer(identity, store, T0 + timedelta(minutes=2))

    response = await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest(session_id="session-1"))

    assert response.duration_seconds == 120
    assert store.sessions["session-1"].status is SessionStatus.ENDED


@pytest.mark.asyncio
async def test_finalize_unknown_session_performs_no_writes(identity, store):
    finalizer = _finalizer(identity, store, T0)

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest(session_id="missing"))

    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert exc.value.message == "Session not found"
    assert store.writes == []


@pytest.mark.asyncio
async def test_finalize_other_users_session_is_not_found(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    finalizer = _finalizer(identity, store, T0 + timedelta(seconds=5))

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer token-bob", schemas.EndSessionRequest(session_id="session-1"))

    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert store.sessions["session-1"].status is SessionStatus.CONNECTING
    assert store.writes == []


@pytest.mark.asyncio
async def test_finalize_survives_call_log_failure(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    store.fail_call_log = True
    finalizer = _finalizer(identity, store, T0 + timedelta(seconds=61))

    response = await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest(session_id="session-1"))

    assert response.duration_seconds == 61
    assert store.sessions["session-1"].status is SessionStatus.ENDED
    assert store.sessions["session-1"].duration_seconds == 61
    assert store.call_logs == []


@pytest.mark.asyncio
async def test_finalize_update_failure_is_internal_and_leaves_session_open(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    store.fail_session_update = True
    finalizer = _finalizer(identity, store, T0 + timedelta(seconds=10))

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest(session_id="session-1"))

    assert exc.value.kind is ErrorKind.INTERNAL
    assert exc.value.message == "Failed to update session"
    assert store.sessions["session-1"].status is SessionStatus.CONNECTING
    assert store.sessions["session-1"].ended_at is None
    assert store.call_logs == []


@pytest.mark.asyncio
async def test_finalize_twice_is_rejected_without_writes(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    finalizer = _finalizer(identity, store, T0 + timedelta(seconds=10))
    payload = schemas.EndSessionRequest(session_id="session-1")

    await finalizer.finalize("Bearer token-alice", payload)
    writes_after_first = list(store.writes)

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer token-alice", payload)

    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    assert exc.value.message == "Session already ended"
    assert store.writes == writes_after_first
    assert store.sessions["session-1"].duration_seconds == 10


@pytest.mark.asyncio
async def test_finalize_requires_session_id(identity, store):
    finalizer = _finalizer(identity, store, T0)

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer token-alice", schemas.EndSessionRequest())

    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    assert exc.value.message == "Session ID is required"


@pytest.mark.asyncio
async def test_finalize_rejects_unknown_token(identity, store):
    store.add_session("session-1", "alice", started_at=T0)
    finalizer = _finalizer(identity, store, T0)

    with pytest.raises(BrokerError) as exc:
        await finalizer.finalize("Bearer nope", schemas.EndSessionRequest(session_id="session-1"))

    assert exc.value.kind is ErrorKind.UNAUTHENTICATED
    assert store.writes == []


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(seconds=125.4), 125),
        (timedelta(seconds=125.5), 126),
        (timedelta(seconds=2.5), 3),
        (timedelta(milliseconds=499), 0),
        (timedelta(seconds=-3), 0),
    ],
)
def test_calculate_duration_rounds_half_up(elapsed, expected):
    assert sessions_service.calculate_duration(T0, T0 + elapsed) == expected


def test_calculate_duration_accepts_naive_start():
    naive_start = datetime(2025, 10, 10, 12, 0)
    ended_at = datetime(2025, 10, 10, 12, 1, tzinfo=timezone.utc)

    assert sessions_service.calculate_duration(naive_start, ended_at) == 60
