"""Utility helpers for reusable functionality."""

from .datetime import (
    app_now,
    from_storage_datetime,
    get_app_timezone,
    parse_timezone,
    to_storage_datetime,
)

__all__ = [
    "app_now",
    "from_storage_datetime",
    "get_app_timezone",
    "parse_timezone",
    "to_storage_datetime",
]
