"""Exceptions raised by the notification domain and its adapters."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class NotificationError(Exception):
    """Base class for notification related failures."""


class ValidationError(NotificationError):
    """Raised when a payload is rejected by the validator of its type."""

    def __init__(self, issues: Sequence[Any], message: str | None = None) -> None:
        self.issues = list(issues)
        super().__init__(message or "Notification data failed validation")


class StorageError(NotificationError):
    """Raised when a storage adapter cannot complete an operation."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthorizationError(NotificationError):
    """Raised at the HTTP boundary for unauthenticated or cross-recipient access."""

    def __init__(self, message: str = "Unauthorized", *, status_code: int = 401) -> None:
        self.status_code = status_code
        super().__init__(message)


__all__ = [
    "AuthorizationError",
    "NotificationError",
    "StorageError",
    "ValidationError",
]
