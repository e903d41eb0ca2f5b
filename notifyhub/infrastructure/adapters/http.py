"""Notification manager that talks to a remote notification API over HTTP."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar
from urllib.parse import quote

import anyio
import httpx

from notifyhub.config import Settings, get_settings
from notifyhub.domain.entities import Notification, NotificationFilter
from notifyhub.domain.errors import AuthorizationError, StorageError, ValidationError
from notifyhub.infrastructure.serialization import deserialize_notification
from notifyhub.infrastructure.transformers import JsonTransformer, Transformer

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_CONCURRENCY = 10

T = TypeVar("T")
R = TypeVar("R")


class _NotFound(Exception):
    """Internal signal for 404 responses."""


def build_query_params(filter: NotificationFilter | Mapping[str, Any] | None) -> dict[str, str]:
    """Translate a filter into query parameters; ``recipient_id`` is never sent."""

    criteria = NotificationFilter.coerce(filter)
    params: dict[str, str] = {}
    if criteria.type is not None:
        params["type"] = criteria.type
    if criteria.read is not None:
        params["read"] = "true" if criteria.read else "false"
    if criteria.archived is not None:
        params["archived"] = "true" if criteria.archived else "false"
    if criteria.limit is not None:
        params["limit"] = str(criteria.limit)
    if criteria.offset is not None:
        params["offset"] = str(criteria.offset)
    return params


def _item_path(notification_id: str, action: str | None = None) -> str:
    path = f"/{quote(notification_id, safe='')}"
    return f"{path}/{action}" if action else path


class HttpNotificationManager:
    """Client counterpart of the notification routes.

    The server resolves the recipient from the request, so none of the methods
    accept a ``recipient_id``. Transport failures and unexpected responses are
    raised as :class:`StorageError`; missing records are reported as ``None``
    (or ``False`` for :meth:`delete`).
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        transformer: Transformer | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.max_concurrency = max_concurrency
        self._transformer = transformer or JsonTransformer()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Content-Type": "application/json", **(headers or {})}

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transformer: Transformer | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> "HttpNotificationManager":
        """Build a client for ``remote_base_url`` using the remote settings."""

        settings = settings or get_settings()
        if not settings.remote_base_url:
            raise ValueError("REMOTE_BASE_URL is not configured")
        return cls(
            settings.remote_base_url,
            client=client,
            transformer=transformer,
            timeout=settings.remote_timeout,
            headers=headers,
            max_concurrency=settings.remote_max_concurrency,
        )

    async def __aenter__(self) -> "HttpNotificationManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client when this manager created it."""

        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        type: str,
        *,
        title: str,
        body: str | None = None,
        data: Any = None,
    ) -> Notification:
        payload = {"type": type, "title": title, "data": data}
        if body is not None:
            payload["body"] = body
        result = await self._request("POST", "/send", json=payload)
        return self._notification(result)

    async def get(self, notification_id: str) -> Notification | None:
        return await self._notification_or_none("GET", _item_path(notification_id))

    async def list(
        self, filter: NotificationFilter | Mapping[str, Any] | None = None
    ) -> list[Notification]:
        result = await self._request("GET", "/", params=build_query_params(filter))
        return [self._notification(item) for item in result or []]

    async def count(
        self, filter: NotificationFilter | Mapping[str, Any] | None = None
    ) -> int:
        result = await self._request("GET", "/count", params=build_query_params(filter))
        return int(result["count"])

    async def unread_count(self) -> int:
        result = await self._request("GET", "/unread-count")
        return int(result["count"])

    async def mark_as_read(self, notification_id: str) -> Notification | None:
        return await self._notification_or_none(
            "POST", _item_path(notification_id, "read")
        )

    async def mark_many_as_read(self, notification_ids: Sequence[str]) -> None:
        await self._for_each(list(dict.fromkeys(notification_ids)), self.mark_as_read)

    async def mark_all_as_read(self) -> int:
        result = await self._request("POST", "/read-all")
        return int((result or {}).get("updated", 0))

    async def archive(self, notification_id: str) -> Notification | None:
        return await self._notification_or_none(
            "POST", _item_path(notification_id, "archive")
        )

    async def unarchive(self, notification_id: str) -> Notification | None:
        return await self._notification_or_none(
            "POST", _item_path(notification_id, "unarchive")
        )

    async def delete(self, notification_id: str) -> bool:
        try:
            await self._request("DELETE", _item_path(notification_id), allow_missing=True)
        except _NotFound:
            return False
        return True

    async def delete_many(
        self, filter: NotificationFilter | Mapping[str, Any] | None = None
    ) -> int:
        """Delete every notification returned by :meth:`list` for ``filter``.

        At most ``max_concurrency`` requests are in flight. The first failure
        cancels the remaining deletions and is raised; records deleted before
        it stay deleted.
        """

        notifications = await self.list(filter)
        results = await self._for_each([n.id for n in notifications], self.delete)
        return sum(1 for removed in results if removed)

    async def _for_each(
        self, items: Sequence[T], operation: Callable[[T], Awaitable[R]]
    ) -> list[R]:
        results: list[Any] = [None] * len(items)
        failures: list[Exception] = []
        limiter = anyio.CapacityLimiter(self.max_concurrency)

        async with anyio.create_task_group() as group:

            async def run(index: int, item: T) -> None:
                async with limiter:
                    try:
                        results[index] = await operation(item)
                    except Exception as exc:
                        failures.append(exc)
                        group.cancel_scope.cancel()

            for index, item in enumerate(items):
                group.start_soon(run, index, item)

        if failures:
            raise failures[0]
        return results

    async def _notification_or_none(self, method: str, path: str) -> Notification | None:
        try:
            result = await self._request(method, path, allow_missing=True)
        except _NotFound:
            return None
        return self._notification(result)

    @staticmethod
    def _notification(payload: Any) -> Notification:
        if not isinstance(payload, Mapping):
            raise StorageError(f"Unexpected notification payload: {payload!r:.100}")
        try:
            return deserialize_notification(payload)
        except ValueError as exc:
            raise StorageError(str(exc)) from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        allow_missing: bool = False,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                f"{self.base_url}{path}",
                params=params or None,
                json=self._transformer.serialize(json) if json is not None else None,
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            raise StorageError(f"Notification API timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Notification API request failed: {exc}") from exc

        try:
            body = response.json() if response.content else {}
        except ValueError as exc:
            if response.is_success:
                raise StorageError(
                    f"Invalid JSON response: {response.text[:100]}",
                    status_code=response.status_code,
                ) from exc
            body = {"error": response.text or f"HTTP {response.status_code}"}

        if not response.is_success:
            self._raise_for_error(response.status_code, body, allow_missing=allow_missing)

        decoded = self._transformer.deserialize(body)
        if isinstance(decoded, Mapping) and "data" in decoded:
            return decoded["data"]
        return decoded

    @staticmethod
    def _raise_for_error(status_code: int, body: Any, *, allow_missing: bool) -> None:
        message = f"HTTP {status_code}"
        issues: list[Any] = []
        if isinstance(body, Mapping):
            message = str(body.get("error") or message)
            issues = list(body.get("issues") or [])

        logger.debug("Notification API responded %s: %s", status_code, message)
        if status_code == 404 and allow_missing:
            raise _NotFound(message)
        if status_code in (401, 403):
            raise AuthorizationError(message, status_code=status_code)
        if status_code == 422:
            raise ValidationError(issues, message)
        raise StorageError(message, status_code=status_code)


__all__ = ["HttpNotificationManager", "build_query_params"]
