"""Call log model."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
import enum
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, enum_values


class CallSentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class CallOutcome(str, enum.Enum):
    RESOLVED = "resolved"
    ESCALATED = "escalated"
    ABANDONED = "abandoned"


class CallLog(Base):
    """Append-only analytics row written once per finalized session."""

    __tablename__ = "call_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    agent_id: Mapped[str] = mapped_column(ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer)
    sentiment: Mapped[CallSentiment | None] = mapped_column(
        Enum(CallSentiment, name="call_sentiment", values_callable=enum_values)
    )
    outcome: Mapped[CallOutcome | None] = mapped_column(
        Enum(CallOutcome, name="call_outcome", values_callable=enum_values)
    )
    intent: Mapped[str | None] = mapped_column(String)
    language: Mapped[str | None] = mapped_column(String)
    transcript: Mapped[str | None] = mapped_column(Text)
    customer_phone: Mapped[str | None] = mapped_column(String)
    cost_rupees: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
