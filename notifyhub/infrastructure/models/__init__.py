"""ORM models registered on the shared declarative base."""

from .notification import NotificationModel

__all__ = ["NotificationModel"]
