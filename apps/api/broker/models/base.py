"""Declarative base shared by the broker tables."""
from __future__ import annotations

import enum

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base model for the broker tables."""

    __abstract__ = True


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values rather than member names."""

    return [member.value for member in enum_cls]
