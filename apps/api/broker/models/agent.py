"""Agent model."""
from __future__ import annotations

from datetime import datetime, timezone
import enum
from uuid import uuid4

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, enum_values


class AgentCategory(str, enum.Enum):
    BANKING = "Banking"
    INSURANCE = "Insurance"
    FINTECH = "Fintech"


class AgentStatus(str, enum.Enum):
    LIVE = "live"
    TESTING = "testing"
    DRAFT = "draft"


class Agent(Base):
    """Voice agent configuration owned by a single user."""

    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    persona_name: Mapped[str | None] = mapped_column(String)
    system_prompt: Mapped[str | None] = mapped_column(Text)
    voice_gender: Mapped[str | None] = mapped_column(String)
    voice_accent: Mapped[str | None] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)
    company_name: Mapped[str | None] = mapped_column(String)
    category: Mapped[AgentCategory] = mapped_column(
        Enum(AgentCategory, name="agent_category", values_callable=enum_values),
        default=AgentCategory.BANKING,
        nullable=False,
    )
    status: Mapped[AgentStatus] = mapped_column(
        Enum(AgentStatus, name="agent_status", values_callable=enum_values),
        default=AgentStatus.DRAFT,
        nullable=False,
    )
    languages: Mapped[list[str] | None] = mapped_column(ARRAY(String))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
