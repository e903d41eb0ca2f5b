"""SQLAlchemy-backed storage adapter for notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from functools import partial
from typing import TypeVar

from anyio import to_thread
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import Select

from notifyhub.domain.entities import Notification, NotificationFilter, NotificationPatch
from notifyhub.domain.errors import StorageError
from notifyhub.infrastructure.database import session_scope
from notifyhub.infrastructure.models import NotificationModel
from notifyhub.utils import from_storage_datetime, to_storage_datetime

logger = logging.getLogger(__name__)

R = TypeVar("R")


class SqlAlchemyNotificationAdapter:
    """Persist notifications in a relational database.

    Every operation opens its own session, commits and closes it. Blocking
    database calls run on a worker thread so the event loop stays responsive.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def create(self, notification: Notification) -> Notification:
        return await self._run(partial(self._create, notification))

    async def get(self, notification_id: str) -> Notification | None:
        return await self._run(partial(self._get, notification_id))

    async def list(self, filter: NotificationFilter) -> list[Notification]:
        return await self._run(partial(self._list, filter))

    async def count(self, filter: NotificationFilter) -> int:
        return await self._run(partial(self._count, filter))

    async def update(
        self, notification_id: str, patch: NotificationPatch
    ) -> Notification | None:
        return await self._run(partial(self._update, notification_id, patch))

    async def delete(self, notification_id: str) -> bool:
        return await self._run(partial(self._delete, notification_id))

    async def delete_many(self, filter: NotificationFilter) -> int:
        return await self._run(partial(self._delete_many, filter))

    async def mark_many_as_read(
        self, notification_ids: Sequence[str], read_at: datetime
    ) -> int:
        return await self._run(
            partial(self._mark_as_read, list(notification_ids), None, read_at)
        )

    async def mark_all_as_read(self, recipient_id: str, read_at: datetime) -> int:
        return await self._run(partial(self._mark_as_read, None, recipient_id, read_at))

    async def _run(self, operation: Callable[[Session], R]) -> R:
        return await to_thread.run_sync(partial(self._in_session, operation))

    def _in_session(self, operation: Callable[[Session], R]) -> R:
        with session_scope(self._session_factory) as session:
            try:
                return operation(session)
            except IntegrityError as exc:
                session.rollback()
                raise StorageError("Notification violates a storage constraint") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Notification storage operation failed: %s", exc)
                raise StorageError("Notification storage operation failed") from exc

    def _create(self, notification: Notification, session: Session) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        session.add(model)
        session.commit()
        return self._to_entity(model)

    def _get(self, notification_id: str, session: Session) -> Notification | None:
        model = self._find(session, notification_id)
        return self._to_entity(model) if model is not None else None

    def _list(self, filter: NotificationFilter, session: Session) -> list[Notification]:
        query = self._filtered(select(NotificationModel), filter).order_by(
            NotificationModel.created_at.asc(), NotificationModel.seq.asc()
        )
        if filter.offset:
            query = query.offset(filter.offset)
        if filter.limit is not None:
            query = query.limit(filter.limit)
        return [self._to_entity(model) for model in session.scalars(query).all()]

    def _count(self, filter: NotificationFilter, session: Session) -> int:
        query = self._filtered(
            select(func.count()).select_from(NotificationModel), filter
        )
        return int(session.scalar(query) or 0)

    def _update(
        self, notification_id: str, patch: NotificationPatch, session: Session
    ) -> Notification | None:
        model = self._find(session, notification_id, for_update=True)
        if model is None:
            return None
        updated = patch.apply(self._to_entity(model))
        model.read = updated.read
        model.read_at = to_storage_datetime(updated.read_at)
        model.archived = updated.archived
        session.commit()
        return self._to_entity(model)

    def _delete(self, notification_id: str, session: Session) -> bool:
        result = session.execute(
            delete(NotificationModel)
            .where(NotificationModel.id == notification_id)
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return bool(result.rowcount)

    def _delete_many(self, filter: NotificationFilter, session: Session) -> int:
        if filter.limit is None and not filter.offset:
            result = session.execute(
                self._filtered(delete(NotificationModel), filter).execution_options(
                    synchronize_session=False
                )
            )
            session.commit()
            return int(result.rowcount or 0)

        ids = [notification.id for notification in self._list(filter, session)]
        if not ids:
            return 0
        result = session.execute(
            delete(NotificationModel)
            .where(NotificationModel.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return int(result.rowcount or 0)

    def _mark_as_read(
        self,
        notification_ids: list[str] | None,
        recipient_id: str | None,
        read_at: datetime,
        session: Session,
    ) -> int:
        query = session.query(NotificationModel).filter(NotificationModel.read.is_(False))
        if notification_ids is not None:
            if not notification_ids:
                return 0
            query = query.filter(NotificationModel.id.in_(notification_ids))
        if recipient_id is not None:
            query = query.filter(NotificationModel.recipient_id == recipient_id)
        updated = query.update(
            {
                NotificationModel.read: True,
                NotificationModel.read_at: to_storage_datetime(read_at),
            },
            synchronize_session=False,
        )
        session.commit()
        return int(updated or 0)

    @staticmethod
    def _find(
        session: Session, notification_id: str, *, for_update: bool = False
    ) -> NotificationModel | None:
        query = select(NotificationModel).where(NotificationModel.id == notification_id)
        if for_update:
            query = query.with_for_update()
        return session.scalars(query).first()

    @staticmethod
    def _filtered(query: Select, filter: NotificationFilter) -> Select:
        if filter.recipient_id is not None:
            query = query.where(NotificationModel.recipient_id == filter.recipient_id)
        if filter.type is not None:
            query = query.where(NotificationModel.type == filter.type)
        if filter.read is not None:
            query = query.where(NotificationModel.read.is_(filter.read))
        if filter.archived is not None:
            query = query.where(NotificationModel.archived.is_(filter.archived))
        return query

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.id = notification.id
        model.recipient_id = notification.recipient_id
        model.type = notification.type
        model.title = notification.title
        model.body = notification.body
        model.data = notification.data
        model.read = notification.read
        model.archived = notification.archived
        model.created_at = to_storage_datetime(notification.created_at)
        model.read_at = to_storage_datetime(notification.read_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            type=model.type,
            recipient_id=model.recipient_id,
            title=model.title,
            body=model.body,
            data=model.data,
            read=bool(model.read),
            archived=bool(model.archived),
            created_at=from_storage_datetime(model.created_at),
            read_at=from_storage_datetime(model.read_at),
        )


__all__ = ["SqlAlchemyNotificationAdapter"]
