"""Storage contract the notification manager is generic over."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from notifyhub.domain.entities import Notification, NotificationFilter, NotificationPatch


@runtime_checkable
class NotificationAdapter(Protocol):
    """Persistence backend for :class:`Notification` records.

    Implementations must return records ordered by creation (oldest first,
    ties broken by insertion order) from :meth:`list` so that ``limit`` and
    ``offset`` produce stable pages. Failures are reported as
    :class:`~notifyhub.domain.errors.StorageError`.
    """

    async def create(self, notification: Notification) -> Notification:
        """Persist a new record and return it as stored."""

    async def get(self, notification_id: str) -> Notification | None:
        """Return the record with ``notification_id`` or ``None``."""

    async def list(self, filter: NotificationFilter) -> list[Notification]:
        """Return the records matching ``filter``."""

    async def count(self, filter: NotificationFilter) -> int:
        """Count the records matching ``filter`` ignoring pagination."""

    async def update(
        self, notification_id: str, patch: NotificationPatch
    ) -> Notification | None:
        """Apply ``patch`` to a record and return it, or ``None`` if missing."""

    async def delete(self, notification_id: str) -> bool:
        """Remove a record; return whether something was removed."""

    async def delete_many(self, filter: NotificationFilter) -> int:
        """Remove every record matching ``filter`` and return how many."""

    async def mark_many_as_read(
        self, notification_ids: Sequence[str], read_at: datetime
    ) -> int:
        """Mark the unread records among ``notification_ids`` as read."""

    async def mark_all_as_read(self, recipient_id: str, read_at: datetime) -> int:
        """Mark every unread record of ``recipient_id`` as read."""


__all__ = ["NotificationAdapter"]
