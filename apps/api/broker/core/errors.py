"""Error taxonomy shared by the broker services."""
from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class BrokerError(Exception):
    """Raised by the broker services; the kind decides the HTTP status."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def unauthenticated(cls) -> "BrokerError":
        # Callers only ever see one message for auth failures.
        return cls(ErrorKind.UNAUTHENTICATED, "Unauthorized")

    @classmethod
    def invalid_argument(cls, message: str) -> "BrokerError":
        return cls(ErrorKind.INVALID_ARGUMENT, message)

    @classmethod
    def not_found(cls, message: str) -> "BrokerError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def internal(cls, message: str) -> "BrokerError":
        return cls(ErrorKind.INTERNAL, message)


class StoreError(RuntimeError):
    """Raised when the datastore rejects a read or write."""
