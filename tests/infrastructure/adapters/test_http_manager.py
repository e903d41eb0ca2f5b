"""Tests for the HTTP notification manager client."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from conftest import NOTIFICATION_TYPES, FakeClock, message_data
from notifyhub.application import NotificationManager
from notifyhub.config import Settings
from notifyhub.domain.errors import AuthorizationError, StorageError, ValidationError
from notifyhub.infrastructure.adapters import HttpNotificationManager, MemoryNotificationAdapter
from notifyhub.infrastructure.adapters.http import build_query_params
from notifyhub.infrastructure.transformers import TaggedJsonTransformer
from notifyhub.main import create_app

BASE_URL = "http://testserver/api/notifications"

WIRE_NOTIFICATION = {
    "id": "n-1",
    "type": "message",
    "recipient_id": "u1",
    "title": "Hi",
    "body": None,
    "data": {"from": "a", "preview": "b"},
    "read": False,
    "archived": False,
    "created_at": "2024-01-01T12:00:00+00:00",
    "read_at": None,
}


def _mock_manager(handler, **kwargs) -> HttpNotificationManager:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpNotificationManager(BASE_URL, client=client, **kwargs)


def test_build_query_params_skips_recipient():
    params = build_query_params(
        {"recipient_id": "u9", "type": "alert", "read": False, "archived": True, "limit": 5, "offset": 0}
    )

    assert params == {
        "type": "alert",
        "read": "false",
        "archived": "true",
        "limit": "5",
        "offset": "0",
    }
    assert build_query_params(None) == {}


@pytest.mark.asyncio
async def test_list_sends_filter_as_query_string():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [WIRE_NOTIFICATION]})

    manager = _mock_manager(handler)
    notifications = await manager.list({"read": False, "limit": 10})

    assert seen[0].url.path == "/api/notifications/"
    assert dict(seen[0].url.params) == {"read": "false", "limit": "10"}
    assert notifications[0].id == "n-1"
    assert notifications[0].created_at == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_send_posts_payload_without_recipient():
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"data": WIRE_NOTIFICATION})

    manager = _mock_manager(handler)
    sent = await manager.send("message", title="Hi", data=message_data())

    assert captured["path"] == "/api/notifications/send"
    assert captured["body"] == {"type": "message", "title": "Hi", "data": message_data()}
    assert sent.title == "Hi"


@pytest.mark.asyncio
async def test_missing_records_are_values_not_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Notification not found"})

    manager = _mock_manager(handler)

    assert await manager.get("n-404") is None
    assert await manager.mark_as_read("n-404") is None
    assert await manager.archive("n-404") is None
    assert await manager.delete("n-404") is False


@pytest.mark.asyncio
async def test_unknown_route_is_a_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Not Found"})

    manager = _mock_manager(handler)

    with pytest.raises(StorageError):
        await manager.count()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "body", "expected"),
    [
        (401, {"error": "Unauthorized"}, AuthorizationError),
        (403, {"error": "Forbidden"}, AuthorizationError),
        (422, {"error": "Invalid", "issues": [{"loc": ["preview"]}]}, ValidationError),
        (500, {"error": "Internal server error"}, StorageError),
    ],
)
async def test_error_statuses_map_to_exceptions(status_code, body, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    manager = _mock_manager(handler)

    with pytest.raises(expected) as excinfo:
        await manager.send("message", title="Hi", data={})
    assert str(excinfo.value) == body["error"]


@pytest.mark.asyncio
async def test_transport_failures_raise_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    manager = _mock_manager(handler)

    with pytest.raises(StorageError, match="timed out"):
        await manager.unread_count()


@pytest.mark.asyncio
async def test_invalid_json_raises_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    manager = _mock_manager(handler)

    with pytest.raises(StorageError, match="Invalid JSON"):
        await manager.unread_count()


@pytest.mark.asyncio
async def test_client_round_trips_against_the_api():
    transformer = TaggedJsonTransformer()
    server_manager = NotificationManager(
        NOTIFICATION_TYPES, MemoryNotificationAdapter(), clock=FakeClock()
    )
    app = create_app(Settings(), manager=server_manager, transformer=transformer)
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), headers={"X-Recipient-Id": "u1"}
    )
    await server_manager.send("note", recipient_id="u2", title="not mine")

    async with HttpNotificationManager(BASE_URL, client=client, transformer=transformer) as remote:
        due = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
        sent = await remote.send("note", title="Reminder", body="Pay rent", data={"due": due})
        second = await remote.send("message", title="Hi", data=message_data())

        assert sent.recipient_id == "u1"
        assert sent.data == {"due": due}
        assert await remote.get(sent.id) == sent
        assert [n.id for n in await remote.list()] == [sent.id, second.id]
        assert await remote.count({"type": "message"}) == 1
        assert await remote.unread_count() == 2

        read = await remote.mark_as_read(sent.id)
        assert read.read is True and read.read_at is not None
        assert (await remote.archive(sent.id)).archived is True
        assert (await remote.unarchive(sent.id)).archived is False

        await remote.mark_many_as_read([second.id])
        assert await remote.unread_count() == 0
        assert await remote.mark_all_as_read() == 0

        assert await remote.delete_many({"type": "message"}) == 1
        assert await remote.delete(sent.id) is True
        assert await remote.delete(sent.id) is False
        assert await remote.list() == []

        with pytest.raises(ValidationError):
            await remote.send("message", title="Bad", data={"from": "a"})

    assert await server_manager.count({"recipient_id": "u2"}) == 1
    await client.aclose()


def _wire(identifier: str) -> dict:
    return {**WIRE_NOTIFICATION, "id": identifier}


def _bulk_handler(records: int, *, fail_on: str | None = None):
    state = {"in_flight": 0, "peak": 0, "deleted": []}

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"data": [_wire(f"n-{i}") for i in range(records)]})
        identifier = request.url.path.rsplit("/", 1)[-1]
        if identifier == fail_on:
            return httpx.Response(403, json={"error": "Forbidden"})
        state["in_flight"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        try:
            await asyncio.sleep(0.01)
        finally:
            state["in_flight"] -= 1
        state["deleted"].append(identifier)
        return httpx.Response(200, json={"data": {"success": True}})

    return handler, state


@pytest.mark.asyncio
async def test_delete_many_limits_concurrent_requests():
    handler, state = _bulk_handler(40)
    manager = _mock_manager(handler, max_concurrency=4)

    assert await manager.delete_many() == 40
    assert 1 < state["peak"] <= 4


@pytest.mark.asyncio
async def test_delete_many_stops_after_first_failure():
    handler, state = _bulk_handler(30, fail_on="n-3")
    manager = _mock_manager(handler, max_concurrency=2)

    with pytest.raises(AuthorizationError, match="Forbidden"):
        await manager.delete_many()

    assert len(state["deleted"]) < 29
    assert state["in_flight"] == 0


@pytest.mark.asyncio
async def test_mark_many_as_read_skips_duplicates_and_limits_concurrency():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"data": _wire("n-1")})

    manager = _mock_manager(handler, max_concurrency=1)
    await manager.mark_many_as_read(["n-1", "n-2", "n-1"])

    assert sorted(seen) == ["/api/notifications/n-1/read", "/api/notifications/n-2/read"]


def test_max_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        HttpNotificationManager(BASE_URL, max_concurrency=0)


@pytest.mark.asyncio
async def test_ids_are_escaped_in_paths():
    seen: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(404, json={"error": "Notification not found"})

    manager = _mock_manager(handler)
    await manager.get("a/b?c#d")
    await manager.archive("a/b")

    assert seen == [
        b"/api/notifications/a%2Fb%3Fc%23d",
        b"/api/notifications/a%2Fb/archive",
    ]


@pytest.mark.asyncio
async def test_malformed_records_raise_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/"):
            return httpx.Response(200, json={"data": [{"id": "n-1"}]})
        return httpx.Response(200, json={"data": "not a record"})

    manager = _mock_manager(handler)

    with pytest.raises(StorageError):
        await manager.list()
    with pytest.raises(StorageError):
        await manager.get("n-1")


@pytest.mark.asyncio
async def test_from_settings_uses_remote_configuration():
    settings = Settings(
        remote_base_url="http://remote.example/api/notifications/",
        remote_timeout=2.5,
        remote_max_concurrency=3,
    )

    async with HttpNotificationManager.from_settings(settings) as remote:
        assert remote.base_url == "http://remote.example/api/notifications"
        assert remote.max_concurrency == 3
        assert remote._client.timeout == httpx.Timeout(2.5)


def test_from_settings_requires_base_url():
    with pytest.raises(ValueError, match="REMOTE_BASE_URL"):
        HttpNotificationManager.from_settings(Settings(remote_base_url=None))
