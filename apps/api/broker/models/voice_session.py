"""Voice session model."""
from __future__ import annotations

from datetime import datetime, timezone
import enum
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, enum_values


class SessionStatus(str, enum.Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    ENDED = "ended"


class VoiceSession(Base):
    """Bookkeeping row for one call attempt in a media room.

    ``ended_at`` and ``duration_seconds`` stay null until the session is
    finalized, and are written together.
    """

    __tablename__ = "voice_sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    agent_id: Mapped[str] = mapped_column(ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    room_name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, name="voice_session_status", native_enum=False, values_callable=enum_values),
        default=SessionStatus.CONNECTING,
        nullable=False,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    duration_seconds: Mapped[int | None] = mapped_column(Integer)
    transcript: Mapped[str | None] = mapped_column(Text)
    sentiment: Mapped[str | None] = mapped_column(String)
    intent: Mapped[str | None] = mapped_column(String)
    language: Mapped[str | None] = mapped_column(String)
    customer_phone: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
