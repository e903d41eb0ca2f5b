"""Timestamps for notifications.

The domain only handles timezone-aware datetimes expressed in the application
timezone. SQL columns store naive UTC.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notifyhub.config import get_settings

_UTC_OFFSET: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)\s*(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


def parse_timezone(name: str | None) -> tzinfo:
    """Return the timezone called ``name``.

    Accepts IANA names (``Europe/Madrid``) and fixed offsets (``UTC-05:00``,
    ``GMT+2``). Blank or unknown names resolve to UTC.
    """

    name = (name or "").strip()
    offset = _UTC_OFFSET.match(name)
    if offset is not None:
        delta = timedelta(
            hours=int(offset["hours"]), minutes=int(offset["minutes"] or 0)
        )
        return timezone(-delta if offset["sign"] == "-" else delta)
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Timezone configured through ``APP_TIMEZONE``."""

    return parse_timezone(get_settings().app_timezone)


def app_now() -> datetime:
    return datetime.now(tz=get_app_timezone())


def to_storage_datetime(value: datetime | None) -> datetime | None:
    """Convert ``value`` to the naive UTC form kept in SQL columns.

    Naive input is assumed to already be UTC.
    """

    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage_datetime(value: datetime | None) -> datetime | None:
    """Express a stored UTC value in the app timezone."""

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_app_timezone())
