"""HTTP routes exposing a notification manager to authenticated recipients.

Every route resolves the caller to a single recipient and scopes the request to
it: filters and sends always use the resolved recipient, and routes addressing
an existing notification check its owner first.

Routes (relative to the router prefix):

- ``GET /`` list (query: ``type``, ``read``, ``archived``, ``limit``, ``offset``)
- ``GET /count`` count with the same query parameters
- ``GET /unread-count`` unread count
- ``GET /{id}`` single notification
- ``POST /send`` send to the caller (body: ``type``, ``title``, ``body``, ``data``)
- ``POST /read-all`` mark everything as read
- ``POST /{id}/read``, ``POST /{id}/archive``, ``POST /{id}/unarchive``
- ``DELETE /{id}``
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from notifyhub.application import NotificationManager
from notifyhub.domain.entities import Notification, NotificationFilter
from notifyhub.domain.errors import AuthorizationError, StorageError, ValidationError
from notifyhub.infrastructure.serialization import serialize_notification
from notifyhub.infrastructure.transformers import JsonTransformer, Transformer
from notifyhub.interfaces.api.dependencies import RecipientResolver
from notifyhub.interfaces.api.schemas import NotificationSendRequest

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "86400",
}


class RequestError(Exception):
    """Client error carrying the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        self.status_code = status_code
        super().__init__(message)


def error_response(
    message: str, status_code: int = status.HTTP_400_BAD_REQUEST, **extra: Any
) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _parse_bool(request: Request, name: str) -> bool | None:
    if name not in request.query_params:
        return None
    return request.query_params[name] == "true"


def _parse_int(request: Request, name: str) -> int | None:
    raw = request.query_params.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise RequestError(f"{name} must be an integer") from exc


def parse_filter(request: Request, recipient_id: str) -> NotificationFilter:
    """Build a filter from query parameters, forced to ``recipient_id``."""

    try:
        return NotificationFilter(
            recipient_id=recipient_id,
            type=request.query_params.get("type") or None,
            read=_parse_bool(request, "read"),
            archived=_parse_bool(request, "archived"),
            limit=_parse_int(request, "limit"),
            offset=_parse_int(request, "offset"),
        )
    except ValueError as exc:
        raise RequestError(str(exc)) from exc


def _handle_errors(
    endpoint: Callable[..., Awaitable[Response]],
) -> Callable[..., Awaitable[Response]]:
    """Translate domain failures raised by ``endpoint`` into error responses."""

    @functools.wraps(endpoint)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        try:
            return await endpoint(*args, **kwargs)
        except RequestError as exc:
            return error_response(str(exc), exc.status_code)
        except AuthorizationError as exc:
            return error_response(str(exc), exc.status_code)
        except ValidationError as exc:
            return error_response(
                str(exc),
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                issues=to_jsonable_python(exc.issues, fallback=str),
            )
        except StorageError:
            logger.exception("Notification storage failed while serving a request")
            return error_response(
                "Notification storage unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
            )
        except Exception:
            logger.exception("Unexpected error while serving a notification request")
            return error_response(
                "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    return wrapper


def create_notification_router(
    manager: NotificationManager,
    resolve_recipient: RecipientResolver,
    *,
    transformer: Transformer | None = None,
    prefix: str = "",
) -> APIRouter:
    """Return a router serving ``manager`` to the recipient of each request."""

    router = APIRouter(prefix=prefix, tags=["notifications"])
    codec = transformer or JsonTransformer()

    def respond(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
        return JSONResponse(codec.serialize({"data": data}), status_code=status_code)

    async def authenticate(request: Request) -> str:
        try:
            recipient_id = resolve_recipient(request)
            if inspect.isawaitable(recipient_id):
                recipient_id = await recipient_id
        except AuthorizationError:
            raise
        except Exception as exc:
            raise AuthorizationError(str(exc) or "Unauthorized") from exc
        if not recipient_id:
            raise AuthorizationError("Unauthorized")
        return str(recipient_id)

    async def owned(notification_id: str, recipient_id: str) -> Notification:
        existing = await manager.get(notification_id)
        if existing is None:
            raise RequestError("Notification not found", status.HTTP_404_NOT_FOUND)
        if existing.recipient_id != recipient_id:
            raise AuthorizationError("Forbidden", status_code=status.HTTP_403_FORBIDDEN)
        return existing

    async def read_body(request: Request) -> Any:
        raw = await request.body()
        if not raw.strip():
            return {}
        try:
            return codec.deserialize(json.loads(raw))
        except ValueError as exc:
            raise RequestError("Request body must be valid JSON") from exc

    @router.options("/", include_in_schema=False)
    @router.options("/{path:path}", include_in_schema=False)
    async def preflight() -> Response:
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)

    @router.get("/")
    @_handle_errors
    async def list_notifications(request: Request) -> Response:
        """List the caller's notifications."""

        recipient_id = await authenticate(request)
        notifications = await manager.list(parse_filter(request, recipient_id))
        return respond([serialize_notification(n) for n in notifications])

    @router.get("/count")
    @_handle_errors
    async def count_notifications(request: Request) -> Response:
        recipient_id = await authenticate(request)
        total = await manager.count(parse_filter(request, recipient_id))
        return respond({"count": total})

    @router.get("/unread-count")
    @_handle_errors
    async def unread_count(request: Request) -> Response:
        recipient_id = await authenticate(request)
        return respond({"count": await manager.unread_count(recipient_id)})

    @router.get("/{notification_id}")
    @_handle_errors
    async def get_notification(request: Request, notification_id: str) -> Response:
        recipient_id = await authenticate(request)
        notification = await owned(notification_id, recipient_id)
        return respond(serialize_notification(notification))

    @router.post("/send")
    @_handle_errors
    async def send_notification(request: Request) -> Response:
        """Send a notification to the caller.

        Sending to other recipients is only possible through the manager on the
        server side.
        """

        recipient_id = await authenticate(request)
        payload = await read_body(request)
        if not isinstance(payload, dict):
            raise RequestError("Request body must be a JSON object")
        try:
            send_request = NotificationSendRequest.model_validate(payload)
        except PydanticValidationError as exc:
            raise RequestError("Invalid notification request") from exc
        if not send_request.is_complete():
            raise RequestError("type and title are required")

        notification = await manager.send(
            send_request.type,
            recipient_id=recipient_id,
            title=send_request.title,
            body=send_request.body,
            data=send_request.data,
        )
        return respond(serialize_notification(notification), status.HTTP_201_CREATED)

    @router.post("/read-all")
    @_handle_errors
    async def read_all(request: Request) -> Response:
        recipient_id = await authenticate(request)
        updated = await manager.mark_all_as_read(recipient_id)
        return respond({"success": True, "updated": updated})

    async def _mutate(
        request: Request,
        notification_id: str,
        action: Callable[[str], Awaitable[Notification | None]],
    ) -> Response:
        recipient_id = await authenticate(request)
        await owned(notification_id, recipient_id)
        notification = await action(notification_id)
        if notification is None:
            raise RequestError("Notification not found", status.HTTP_404_NOT_FOUND)
        return respond(serialize_notification(notification))

    @router.post("/{notification_id}/read")
    @_handle_errors
    async def mark_as_read(request: Request, notification_id: str) -> Response:
        return await _mutate(request, notification_id, manager.mark_as_read)

    @router.post("/{notification_id}/archive")
    @_handle_errors
    async def archive(request: Request, notification_id: str) -> Response:
        return await _mutate(request, notification_id, manager.archive)

    @router.post("/{notification_id}/unarchive")
    @_handle_errors
    async def unarchive(request: Request, notification_id: str) -> Response:
        return await _mutate(request, notification_id, manager.unarchive)

    @router.delete("/{notification_id}")
    @_handle_errors
    async def delete_notification(request: Request, notification_id: str) -> Response:
        recipient_id = await authenticate(request)
        await owned(notification_id, recipient_id)
        removed = await manager.delete(notification_id)
        if not removed:
            raise RequestError("Notification not found", status.HTTP_404_NOT_FOUND)
        return respond({"success": True})

    return router


__all__ = ["CORS_HEADERS", "create_notification_router", "error_response", "parse_filter"]
