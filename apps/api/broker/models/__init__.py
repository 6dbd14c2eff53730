"""Expose ORM models."""
from .agent import Agent, AgentCategory, AgentStatus
from .call_log import CallLog, CallOutcome, CallSentiment
from .voice_session import SessionStatus, VoiceSession

__all__ = [
    "Agent",
    "AgentCategory",
    "AgentStatus",
    "CallLog",
    "CallOutcome",
    "CallSentiment",
    "SessionStatus",
    "VoiceSession",
]
