"""Typed, adapter-backed store for per-recipient notifications."""

from notifyhub.application import NotificationAdapter, NotificationManager
from notifyhub.domain.entities import Notification, NotificationFilter, NotificationPatch
from notifyhub.domain.errors import (
    AuthorizationError,
    NotificationError,
    StorageError,
    ValidationError,
)
from notifyhub.domain.validators import (
    PydanticValidator,
    TypeRegistry,
    ValidationFailure,
    ValidationSuccess,
    Validator,
)
from notifyhub.infrastructure.adapters import (
    HttpNotificationManager,
    MemoryNotificationAdapter,
    MemoryNotificationStore,
    SqlAlchemyNotificationAdapter,
)
from notifyhub.infrastructure.transformers import (
    JsonTransformer,
    TaggedJsonTransformer,
    Transformer,
)

__all__ = [
    "AuthorizationError",
    "HttpNotificationManager",
    "JsonTransformer",
    "MemoryNotificationAdapter",
    "MemoryNotificationStore",
    "Notification",
    "NotificationAdapter",
    "NotificationError",
    "NotificationFilter",
    "NotificationManager",
    "NotificationPatch",
    "PydanticValidator",
    "SqlAlchemyNotificationAdapter",
    "StorageError",
    "TaggedJsonTransformer",
    "Transformer",
    "TypeRegistry",
    "ValidationError",
    "ValidationFailure",
    "ValidationSuccess",
    "Validator",
]
