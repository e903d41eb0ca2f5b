"""Pydantic models describing notification request payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationSendRequest(BaseModel):
    """Body accepted by ``POST /send``; the recipient is resolved server side."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = Field(default=None, description="Registered notification type")
    title: str | None = Field(default=None, description="Short notification title")
    body: str | None = Field(default=None, description="Optional longer text")
    data: Any = Field(default=None, description="Payload validated against the type")

    def is_complete(self) -> bool:
        """Return whether both ``type`` and ``title`` were provided."""

        return bool(self.type) and bool(self.title)


__all__ = ["NotificationSendRequest"]
