"""Domain entities exposed by the application."""

from .notification import Notification, NotificationFilter, NotificationPatch

__all__ = [
    "Notification",
    "NotificationFilter",
    "NotificationPatch",
]
