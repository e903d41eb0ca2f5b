"""In-memory storage adapter for notifications."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Iterator, Sequence
from datetime import datetime

from notifyhub.domain.entities import Notification, NotificationFilter, NotificationPatch
from notifyhub.domain.errors import StorageError

from . import filtering


class MemoryNotificationStore:
    """Ordered collection of notifications keyed by identifier.

    Records are never edited in place: every change swaps the stored object for
    an updated copy while holding the lock.
    """

    def __init__(self) -> None:
        self._records: OrderedDict[str, Notification] = OrderedDict()
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._records

    def snapshot(self) -> list[Notification]:
        """Return the stored records in insertion order."""

        with self.lock:
            return list(self._records.values())

    def items(self) -> Iterator[tuple[str, Notification]]:
        return iter(list(self._records.items()))

    def get(self, notification_id: str) -> Notification | None:
        return self._records.get(notification_id)

    def put(self, notification: Notification) -> None:
        self._records[notification.id] = notification

    def pop(self, notification_id: str) -> Notification | None:
        return self._records.pop(notification_id, None)

    def clear(self) -> None:
        with self.lock:
            self._records.clear()


class MemoryNotificationAdapter:
    """Keep notifications in process memory.

    Each adapter owns its own :class:`MemoryNotificationStore` unless one is
    passed in explicitly. Data is lost when the process exits.
    """

    def __init__(self, store: MemoryNotificationStore | None = None) -> None:
        self.store = store if store is not None else MemoryNotificationStore()

    async def create(self, notification: Notification) -> Notification:
        with self.store.lock:
            if notification.id in self.store:
                msg = f"Notification with id {notification.id} already exists"
                raise StorageError(msg)
            self.store.put(notification)
        return notification

    async def get(self, notification_id: str) -> Notification | None:
        return self.store.get(notification_id)

    async def list(self, filter: NotificationFilter) -> list[Notification]:
        return filtering.select(self.store.snapshot(), filter)

    async def count(self, filter: NotificationFilter) -> int:
        return filtering.count(self.store.snapshot(), filter)

    async def update(
        self, notification_id: str, patch: NotificationPatch
    ) -> Notification | None:
        with self.store.lock:
            existing = self.store.get(notification_id)
            if existing is None:
                return None
            updated = patch.apply(existing)
            self.store.put(updated)
        return updated

    async def delete(self, notification_id: str) -> bool:
        with self.store.lock:
            return self.store.pop(notification_id) is not None

    async def delete_many(self, filter: NotificationFilter) -> int:
        with self.store.lock:
            doomed = filtering.select(self.store.snapshot(), filter)
            for notification in doomed:
                self.store.pop(notification.id)
        return len(doomed)

    async def mark_many_as_read(
        self, notification_ids: Sequence[str], read_at: datetime
    ) -> int:
        patch = NotificationPatch(read=True, read_at=read_at)
        updated = 0
        with self.store.lock:
            for notification_id in notification_ids:
                existing = self.store.get(notification_id)
                if existing is None or existing.read:
                    continue
                self.store.put(patch.apply(existing))
                updated += 1
        return updated

    async def mark_all_as_read(self, recipient_id: str, read_at: datetime) -> int:
        patch = NotificationPatch(read=True, read_at=read_at)
        updated = 0
        with self.store.lock:
            for _, existing in self.store.items():
                if existing.recipient_id != recipient_id or existing.read:
                    continue
                self.store.put(patch.apply(existing))
                updated += 1
        return updated


__all__ = ["MemoryNotificationAdapter", "MemoryNotificationStore"]
