"""FastAPI application factory for the notification API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import Engine

from notifyhub.application import NotificationAdapter, NotificationManager
from notifyhub.config import Settings, get_settings
from notifyhub.infrastructure.adapters import (
    MemoryNotificationAdapter,
    SqlAlchemyNotificationAdapter,
)
from notifyhub.infrastructure.database import (
    build_engine,
    build_session_factory,
    initialize_database,
)
from notifyhub.infrastructure.transformers import Transformer
from notifyhub.interfaces.api.dependencies import (
    RecipientResolver,
    header_recipient_resolver,
)
from notifyhub.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


def build_adapter(settings: Settings) -> tuple[NotificationAdapter, Engine | None]:
    """Create the storage adapter selected by ``settings``."""

    if settings.storage_backend == "sql":
        engine = build_engine(settings.database_url)
        initialize_database(engine)
        return SqlAlchemyNotificationAdapter(build_session_factory(engine)), engine
    return MemoryNotificationAdapter(), None


def create_app(
    settings: Settings | None = None,
    *,
    manager: NotificationManager | None = None,
    types: Mapping[str, Any] | None = None,
    resolve_recipient: RecipientResolver | None = None,
    transformer: Transformer | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without an explicit ``manager`` one is built from ``settings`` and ``types``
    on the configured storage backend. The default recipient resolver trusts
    the ``recipient_header`` request header.
    """

    settings = settings or get_settings()
    logging.getLogger("notifyhub").setLevel(settings.log_level)

    engine: Engine | None = None
    if manager is None:
        adapter, engine = build_adapter(settings)
        manager = NotificationManager(types or {}, adapter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Release the database engine when the application shuts down."""

        logger.info(
            "Notification API ready on %r using %s storage",
            settings.api_prefix or "/",
            settings.storage_backend,
        )
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(title="notifyhub", lifespan=lifespan)
    app.state.notification_manager = manager

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_routes(
        app,
        manager,
        resolve_recipient or header_recipient_resolver(settings.recipient_header),
        prefix=settings.api_prefix,
        transformer=transformer,
    )
    return app


__all__ = ["build_adapter", "create_app"]
