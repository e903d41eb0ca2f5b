from .notification import NotificationSendRequest

__all__ = ["NotificationSendRequest"]
