"""Application services built on top of the domain model."""

from .manager import NotificationManager, OnSendHook
from .ports import NotificationAdapter

__all__ = ["NotificationAdapter", "NotificationManager", "OnSendHook"]
