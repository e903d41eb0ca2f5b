from fastapi import FastAPI

from notifyhub.application import NotificationManager
from notifyhub.infrastructure.transformers import Transformer
from notifyhub.interfaces.api.dependencies import RecipientResolver

from .notifications import create_notification_router


def register_routes(
    app: FastAPI,
    manager: NotificationManager,
    resolve_recipient: RecipientResolver,
    *,
    prefix: str = "",
    transformer: Transformer | None = None,
) -> None:
    """Register the notification routes on the FastAPI application."""

    app.include_router(
        create_notification_router(
            manager, resolve_recipient, transformer=transformer, prefix=prefix
        )
    )


__all__ = ["create_notification_router", "register_routes"]
