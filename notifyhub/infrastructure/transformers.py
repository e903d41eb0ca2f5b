"""Transformers applied to payloads crossing the HTTP boundary.

The server serializes response bodies and deserializes request bodies with a
transformer; the HTTP client does the reverse. Both sides must use the same
transformer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Final, Protocol, runtime_checkable
from uuid import UUID

from pydantic_core import to_jsonable_python


@runtime_checkable
class Transformer(Protocol):
    """Pair of functions converting values to and from the wire format."""

    def serialize(self, data: Any) -> Any:  # pragma: no cover - protocol
        ...

    def deserialize(self, data: Any) -> Any:  # pragma: no cover - protocol
        ...


class JsonTransformer:
    """Plain JSON encoding; datetimes become ISO 8601 strings one way only."""

    def serialize(self, data: Any) -> Any:
        return to_jsonable_python(data)

    def deserialize(self, data: Any) -> Any:
        return data


TYPE_KEY: Final[str] = "$type"
VALUE_KEY: Final[str] = "value"

_ENCODERS: Final[dict[type, tuple[str, Callable[[Any], Any]]]] = {
    datetime: ("datetime", lambda value: value.isoformat()),
    date: ("date", lambda value: value.isoformat()),
    time: ("time", lambda value: value.isoformat()),
    Decimal: ("decimal", str),
    UUID: ("uuid", str),
}

_DECODERS: Final[dict[str, Callable[[Any], Any]]] = {
    "datetime": datetime.fromisoformat,
    "date": date.fromisoformat,
    "time": time.fromisoformat,
    "decimal": Decimal,
    "uuid": UUID,
}


class TaggedJsonTransformer:
    """JSON encoding that round-trips values JSON has no type for.

    ``datetime``, ``date``, ``time``, ``Decimal``, ``UUID``, ``set`` and
    ``tuple`` values are wrapped as ``{"$type": <name>, "value": <text>}`` and
    restored by :meth:`deserialize`.
    """

    def serialize(self, data: Any) -> Any:
        encoder = _ENCODERS.get(type(data))
        if encoder is not None:
            name, encode = encoder
            return {TYPE_KEY: name, VALUE_KEY: encode(data)}
        if isinstance(data, Mapping):
            return {str(key): self.serialize(value) for key, value in data.items()}
        if isinstance(data, (set, frozenset)):
            return {TYPE_KEY: "set", VALUE_KEY: [self.serialize(item) for item in data]}
        if isinstance(data, tuple):
            return {TYPE_KEY: "tuple", VALUE_KEY: [self.serialize(item) for item in data]}
        if isinstance(data, list):
            return [self.serialize(item) for item in data]
        if data is None or isinstance(data, (str, int, float, bool)):
            return data
        return self.serialize(to_jsonable_python(data))

    def deserialize(self, data: Any) -> Any:
        if isinstance(data, list):
            return [self.deserialize(item) for item in data]
        if not isinstance(data, Mapping):
            return data
        if set(data) == {TYPE_KEY, VALUE_KEY}:
            name = data[TYPE_KEY]
            if name == "set":
                return {self.deserialize(item) for item in data[VALUE_KEY]}
            if name == "tuple":
                return tuple(self.deserialize(item) for item in data[VALUE_KEY])
            decoder = _DECODERS.get(name)
            if decoder is not None:
                return decoder(data[VALUE_KEY])
        return {key: self.deserialize(value) for key, value in data.items()}


__all__ = ["JsonTransformer", "TaggedJsonTransformer", "Transformer"]
