"""Recipient resolution for the notification routes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Union

from fastapi import Request

from notifyhub.domain.errors import AuthorizationError

RecipientResolver = Callable[[Request], Union[str, Awaitable[str]]]


def header_recipient_resolver(header_name: str) -> RecipientResolver:
    """Return a resolver reading the recipient identifier from ``header_name``.

    Only suitable behind a gateway that authenticates callers and sets the
    header itself; clients must not be able to choose its value.
    """

    def resolve(request: Request) -> str:
        recipient_id = (request.headers.get(header_name) or "").strip()
        if not recipient_id:
            raise AuthorizationError("Unauthorized")
        return recipient_id

    return resolve


__all__ = ["RecipientResolver", "header_recipient_resolver"]
