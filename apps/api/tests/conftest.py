"""Shared fixtures for broker tests."""
from __future__ import annotations

import pytest

from fakes import FakeIdentityResolver, InMemorySessionStore


@pytest.fixture
def identity() -> FakeIdentityResolver:
    return FakeIdentityResolver()


@pytest.fixture
def store() -> InMemorySessionStore:
    store = InMemorySessionStore()
    store.add_agent(
        "agent-1",
        "alice",
        name="Support Bot",
        persona_name="Asha",
        system_prompt="Be brief.",
        voice_gender="female",
        voice_accent="Indian English",
    )
    return store
