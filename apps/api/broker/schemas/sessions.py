"""Request and response bodies for token issuance and session finalization."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IssueTokenRequest(_CamelModel):
    agent_id: str | None = Field(default=None, alias="agentId")
    room_name: str | None = Field(default=None, alias="roomName", description="Explicit room to join")
    participant_name: str | None = Field(default=None, alias="participantName")


class AgentSummary(BaseModel):
    id: str
    name: str
    persona_name: str | None = None
    system_prompt: str | None = None
    voice_gender: str | None = None
    voice_accent: str | None = None


class IssueTokenResponse(_CamelModel):
    token: str = Field(..., description="Signed room access token")
    url: str = Field(..., description="Real-time endpoint the token is valid for")
    room_name: str = Field(..., alias="roomName")
    session_id: str | None = Field(default=None, alias="sessionId")
    agent: AgentSummary


class EndSessionRequest(_CamelModel):
    session_id: str | None = Field(default=None, alias="sessionId")
    transcript: str | None = None
    sentiment: str | None = None
    intent: str | None = None
    language: str | None = None


class EndSessionResponse(_CamelModel):
    success: bool
    duration_seconds: int = Field(..., alias="durationSeconds")


class ErrorResponse(BaseModel):
    error: str
