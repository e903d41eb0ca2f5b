"""Conversion between notification entities and their wire representation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from notifyhub.domain.entities import Notification


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the wire representation of ``notification``.

    Datetimes are kept as objects; the response transformer decides how they
    are encoded.
    """

    return {
        "id": notification.id,
        "type": notification.type,
        "recipient_id": notification.recipient_id,
        "title": notification.title,
        "body": notification.body,
        "data": notification.data,
        "read": notification.read,
        "archived": notification.archived,
        "created_at": notification.created_at,
        "read_at": notification.read_at,
    }


def deserialize_notification(payload: Mapping[str, Any]) -> Notification:
    """Build a :class:`Notification` from its wire representation."""

    try:
        return Notification(
            id=str(payload["id"]),
            type=str(payload["type"]),
            recipient_id=str(payload["recipient_id"]),
            title=str(payload["title"]),
            body=payload.get("body"),
            data=payload.get("data"),
            read=bool(payload.get("read", False)),
            archived=bool(payload.get("archived", False)),
            created_at=_parse_datetime(payload["created_at"]),
            read_at=_parse_datetime(payload.get("read_at")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed notification payload: {exc}"
        raise ValueError(msg) from exc


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        # ``fromisoformat`` only accepts a trailing "Z" from Python 3.11 on.
        if value.endswith("Z"):
            value = f"{value[:-1]}+00:00"
        return datetime.fromisoformat(value)
    msg = f"Unsupported datetime value: {value!r}"
    raise TypeError(msg)


__all__ = ["deserialize_notification", "serialize_notification"]
