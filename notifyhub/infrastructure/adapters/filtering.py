"""Evaluate notification filters over in-process collections."""

from __future__ import annotations

from collections.abc import Iterable

from notifyhub.domain.entities import Notification, NotificationFilter


def select(
    records: Iterable[Notification], filter: NotificationFilter
) -> list[Notification]:
    """Return the records matching ``filter``, paginated.

    ``records`` must already be in insertion order; the sort on ``created_at``
    is stable so records sharing a timestamp keep that order.
    """

    matching = [record for record in records if filter.matches(record)]
    matching.sort(key=lambda record: record.created_at)
    return paginate(matching, limit=filter.limit, offset=filter.offset)


def count(records: Iterable[Notification], filter: NotificationFilter) -> int:
    return sum(1 for record in records if filter.matches(record))


def paginate(
    records: list[Notification], *, limit: int | None, offset: int | None
) -> list[Notification]:
    start = offset or 0
    if limit is None:
        return records[start:]
    return records[start : start + limit]


__all__ = ["count", "paginate", "select"]
