"""Shared fixtures for the notification test-suite."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel, ConfigDict, Field

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from notifyhub.application import NotificationManager
from notifyhub.infrastructure.adapters import MemoryNotificationAdapter


class MessageData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(alias="from")
    preview: str


class SeverityValidator:
    """Hand-written validator returning the mapping result shape."""

    levels = ("info", "warning", "error")

    def validate(self, raw: Any) -> dict[str, Any]:
        if isinstance(raw, dict) and raw.get("severity") in self.levels:
            return {"value": {"severity": raw["severity"]}}
        return {"issues": [{"message": "severity must be info, warning or error"}]}


NOTIFICATION_TYPES: dict[str, Any] = {
    "message": MessageData,
    "alert": SeverityValidator(),
    "note": dict,
}


class FakeClock:
    """Clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def adapter() -> MemoryNotificationAdapter:
    return MemoryNotificationAdapter()


@pytest.fixture()
def manager(adapter: MemoryNotificationAdapter, clock: FakeClock) -> NotificationManager:
    return NotificationManager(NOTIFICATION_TYPES, adapter, clock=clock)


def message_data(sender: str = "a", preview: str = "b") -> dict[str, str]:
    return {"from": sender, "preview": preview}
