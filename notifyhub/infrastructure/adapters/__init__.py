"""Storage adapters implementing :class:`~notifyhub.application.NotificationAdapter`."""

from .http import HttpNotificationManager
from .memory import MemoryNotificationAdapter, MemoryNotificationStore
from .sqlalchemy import SqlAlchemyNotificationAdapter

__all__ = [
    "HttpNotificationManager",
    "MemoryNotificationAdapter",
    "MemoryNotificationStore",
    "SqlAlchemyNotificationAdapter",
]
