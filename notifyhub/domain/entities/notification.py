"""Domain entities describing stored notifications and queries over them."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Notification:
    """Information message recorded for a single recipient."""

    id: str
    type: str
    recipient_id: str
    title: str
    created_at: datetime
    body: str | None = None
    data: Any = field(default_factory=dict)
    read: bool = False
    archived: bool = False
    read_at: datetime | None = None


@dataclass(frozen=True)
class NotificationPatch:
    """Subset of fields an adapter is allowed to change on a stored record.

    ``None`` means "leave untouched"; ``read_at`` is only meaningful together
    with ``read=True``.
    """

    read: bool | None = None
    read_at: datetime | None = None
    archived: bool | None = None

    def apply(self, notification: Notification) -> Notification:
        """Return a copy of ``notification`` with the patch applied."""

        changes: dict[str, Any] = {}
        if self.read is not None and self.read != notification.read:
            changes["read"] = self.read
            changes["read_at"] = self.read_at if self.read else None
        if self.archived is not None:
            changes["archived"] = self.archived
        if not changes:
            return notification
        return replace(notification, **changes)


@dataclass(frozen=True)
class NotificationFilter:
    """Query over stored notifications.

    Unset fields impose no constraint. Present fields are combined with AND.
    ``limit`` and ``offset`` paginate over records ordered by creation.
    """

    recipient_id: str | None = None
    type: str | None = None
    read: bool | None = None
    archived: bool | None = None
    limit: int | None = None
    offset: int | None = None

    def __post_init__(self) -> None:
        for name in ("limit", "offset"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                msg = f"{name} must be a non-negative integer"
                raise ValueError(msg)

    def matches(self, notification: Notification) -> bool:
        """Return whether ``notification`` satisfies every predicate."""

        if self.recipient_id is not None and notification.recipient_id != self.recipient_id:
            return False
        if self.type is not None and notification.type != self.type:
            return False
        if self.read is not None and notification.read != self.read:
            return False
        if self.archived is not None and notification.archived != self.archived:
            return False
        return True

    def with_recipient(self, recipient_id: str) -> "NotificationFilter":
        """Return a copy of the filter scoped to ``recipient_id``."""

        return replace(self, recipient_id=recipient_id)

    def without_pagination(self) -> "NotificationFilter":
        """Return a copy of the filter with ``limit`` and ``offset`` cleared."""

        return replace(self, limit=None, offset=None)

    @classmethod
    def coerce(cls, value: "NotificationFilter | dict[str, Any] | None") -> "NotificationFilter":
        """Build a filter from ``value`` which may already be one."""

        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        known = {item.name for item in fields(cls)}
        unknown = set(value) - known
        if unknown:
            msg = f"Unknown filter fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        return cls(**value)


__all__ = ["Notification", "NotificationFilter", "NotificationPatch"]
