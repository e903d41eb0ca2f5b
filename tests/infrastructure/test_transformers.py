"""Tests for the wire transformers and notification serialization."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from notifyhub.domain.entities import Notification
from notifyhub.infrastructure.serialization import (
    deserialize_notification,
    serialize_notification,
)
from notifyhub.infrastructure.transformers import (
    JsonTransformer,
    TaggedJsonTransformer,
    Transformer,
)

CREATED = datetime(2024, 2, 29, 23, 59, 59, 123456, tzinfo=timezone(timedelta(hours=-5)))


def _notification(**overrides) -> Notification:
    values = {
        "id": "n-1",
        "type": "reminder",
        "recipient_id": "u1",
        "title": "Standup",
        "created_at": CREATED,
        "data": {"due": date(2024, 3, 1), "amount": Decimal("10.50")},
    }
    values.update(overrides)
    return Notification(**values)


def test_transformers_satisfy_protocol():
    assert isinstance(JsonTransformer(), Transformer)
    assert isinstance(TaggedJsonTransformer(), Transformer)


def test_tagged_transformer_restores_rich_values_after_json_encoding():
    transformer = TaggedJsonTransformer()
    payload = {
        "when": CREATED,
        "day": date(2024, 1, 1),
        "price": Decimal("1.10"),
        "ref": UUID("12345678-1234-5678-1234-567812345678"),
        "tags": {"a"},
        "pair": (1, "two"),
        "nested": [{"at": CREATED}],
        "plain": None,
    }

    wire = json.loads(json.dumps(transformer.serialize(payload)))

    assert transformer.deserialize(wire) == payload


def test_json_transformer_encodes_datetimes_as_iso_strings():
    wire = JsonTransformer().serialize({"at": CREATED})

    assert wire == {"at": CREATED.isoformat()}
    assert JsonTransformer().deserialize(wire) is wire


def test_serialized_notification_round_trips_through_tagged_json():
    transformer = TaggedJsonTransformer()
    notification = _notification(read=True, read_at=CREATED + timedelta(minutes=5))

    wire = json.loads(json.dumps(transformer.serialize(serialize_notification(notification))))
    restored = deserialize_notification(transformer.deserialize(wire))

    assert restored == notification


def test_deserialize_accepts_iso_strings():
    notification = _notification(data={})
    wire = JsonTransformer().serialize(serialize_notification(notification))
    wire["created_at"] = "2024-03-01T04:59:59Z"

    restored = deserialize_notification(wire)

    assert restored.created_at == datetime(2024, 3, 1, 4, 59, 59, tzinfo=timezone.utc)
    assert restored.read_at is None


def test_deserialize_rejects_incomplete_payload():
    with pytest.raises(ValueError):
        deserialize_notification({"id": "n-1", "title": "missing fields"})
