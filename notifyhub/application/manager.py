"""Notification manager orchestrating validation, storage and the send hook."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, Union
from uuid import uuid4

from notifyhub.domain.entities import Notification, NotificationFilter, NotificationPatch
from notifyhub.domain.validators import TypeRegistry
from notifyhub.utils import app_now

from .ports import NotificationAdapter

logger = logging.getLogger(__name__)

OnSendHook = Callable[[Notification], Union[Awaitable[None], None]]
FilterLike = Union[NotificationFilter, Mapping[str, Any], None]


def _default_id() -> str:
    return str(uuid4())


class NotificationManager:
    """Create, query and update notifications stored through an adapter.

    ``types`` maps notification type names to validators (see
    :class:`~notifyhub.domain.validators.TypeRegistry`). ``on_send`` runs after
    a notification has been persisted; it may be a regular function or a
    coroutine function and ``send`` only returns once it has finished. A
    failing hook makes ``send`` fail but the stored record is kept.
    """

    def __init__(
        self,
        types: TypeRegistry | Mapping[str, Any],
        adapter: NotificationAdapter,
        *,
        on_send: OnSendHook | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._types = types if isinstance(types, TypeRegistry) else TypeRegistry(types)
        self._adapter = adapter
        self._on_send = on_send
        self._id_factory = id_factory or _default_id
        self._clock = clock or app_now

    @property
    def adapter(self) -> NotificationAdapter:
        """Underlying storage adapter for advanced operations."""

        return self._adapter

    @property
    def types(self) -> TypeRegistry:
        return self._types

    async def send(
        self,
        type: str,
        *,
        recipient_id: str,
        title: str,
        body: str | None = None,
        data: Any = None,
    ) -> Notification:
        """Validate, persist and announce a new notification."""

        if not recipient_id:
            raise ValueError("recipient_id is required")
        if not title:
            raise ValueError("title is required")

        validated = self._types.validate(type, data)
        notification = Notification(
            id=self._id_factory(),
            type=type,
            recipient_id=recipient_id,
            title=title,
            body=body,
            data=validated,
            read=False,
            archived=False,
            created_at=self._clock(),
            read_at=None,
        )
        saved = await self._adapter.create(notification)
        logger.debug(
            "Stored notification %s of type %r for recipient %s",
            saved.id,
            saved.type,
            saved.recipient_id,
        )

        if self._on_send is not None:
            result = self._on_send(saved)
            if inspect.isawaitable(result):
                await result
        return saved

    async def get(self, notification_id: str) -> Notification | None:
        return await self._adapter.get(notification_id)

    async def list(self, filter: FilterLike = None) -> list[Notification]:
        """Return notifications matching ``filter`` in creation order."""

        return await self._adapter.list(NotificationFilter.coerce(filter))

    async def count(self, filter: FilterLike = None) -> int:
        """Count notifications matching ``filter``; pagination is ignored."""

        return await self._adapter.count(
            NotificationFilter.coerce(filter).without_pagination()
        )

    async def unread_count(self, recipient_id: str) -> int:
        return await self.count(NotificationFilter(recipient_id=recipient_id, read=False))

    async def mark_as_read(self, notification_id: str) -> Notification | None:
        """Mark a notification as read, keeping the first ``read_at``."""

        existing = await self._adapter.get(notification_id)
        if existing is None:
            return None
        if existing.read:
            return existing
        return await self._adapter.update(
            notification_id, NotificationPatch(read=True, read_at=self._clock())
        )

    async def mark_many_as_read(self, notification_ids: Sequence[str]) -> None:
        """Mark every known, unread notification in ``notification_ids`` as read."""

        ids = list(dict.fromkeys(i for i in notification_ids if i))
        if not ids:
            return
        await self._adapter.mark_many_as_read(ids, self._clock())

    async def mark_all_as_read(self, recipient_id: str) -> int:
        """Mark all unread notifications of ``recipient_id`` as read."""

        updated = await self._adapter.mark_all_as_read(recipient_id, self._clock())
        logger.debug("Marked %s notifications as read for %s", updated, recipient_id)
        return updated

    async def archive(self, notification_id: str) -> Notification | None:
        return await self._set_archived(notification_id, True)

    async def unarchive(self, notification_id: str) -> Notification | None:
        return await self._set_archived(notification_id, False)

    async def delete(self, notification_id: str) -> bool:
        return await self._adapter.delete(notification_id)

    async def delete_many(self, filter: FilterLike) -> int:
        """Remove every notification matching ``filter``."""

        removed = await self._adapter.delete_many(NotificationFilter.coerce(filter))
        logger.info("Deleted %s notifications", removed)
        return removed

    async def _set_archived(
        self, notification_id: str, archived: bool
    ) -> Notification | None:
        existing = await self._adapter.get(notification_id)
        if existing is None:
            return None
        if existing.archived is archived:
            return existing
        return await self._adapter.update(
            notification_id, NotificationPatch(archived=archived)
        )


__all__ = ["NotificationManager", "OnSendHook"]
