"""Payload validation for notification types."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar, Union, runtime_checkable

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    """Successful validation carrying the value to store."""

    value: T


@dataclass(frozen=True)
class ValidationFailure:
    """Failed validation carrying the reported issues."""

    issues: Sequence[Any] = field(default_factory=tuple)


ValidationResult = Union[ValidationSuccess[Any], ValidationFailure]


@runtime_checkable
class Validator(Protocol):
    """Anything able to turn a raw payload into a validated value."""

    def validate(self, raw: Any) -> Any:  # pragma: no cover - protocol
        ...


class PydanticValidator:
    """Validate payloads against a pydantic model or any type pydantic understands.

    Validated values are dumped back to plain Python data so stored payloads stay
    independent from the model classes.
    """

    def __init__(self, schema: Any) -> None:
        self.schema = schema
        self._adapter: TypeAdapter[Any] = TypeAdapter(schema)

    def validate(self, raw: Any) -> ValidationResult:
        try:
            value = self._adapter.validate_python(raw)
        except PydanticValidationError as exc:
            return ValidationFailure(
                issues=exc.errors(include_url=False, include_context=False)
            )
        return ValidationSuccess(self._adapter.dump_python(value, by_alias=True))

    def __repr__(self) -> str:
        return f"PydanticValidator({self.schema!r})"


def as_validator(entry: Any) -> Validator | None:
    """Return the validator represented by a registry ``entry``.

    Pydantic models are wrapped in :class:`PydanticValidator`; objects exposing a
    ``validate`` method are used as they are. Anything else is a plain type
    marker without a runtime check.
    """

    if isinstance(entry, type) and issubclass(entry, BaseModel):
        return PydanticValidator(entry)
    if callable(getattr(entry, "validate", None)):
        return entry
    return None


def _normalize_result(result: Any) -> ValidationResult:
    if isinstance(result, (ValidationSuccess, ValidationFailure)):
        return result
    if isinstance(result, Mapping):
        if "issues" in result and result["issues"] is not None:
            return ValidationFailure(issues=list(result["issues"]))
        if "value" in result:
            return ValidationSuccess(result["value"])
    msg = f"Validator returned an unsupported result: {result!r}"
    raise TypeError(msg)


class TypeRegistry:
    """Map notification type names to their payload validators."""

    def __init__(self, types: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(types or {})
        self._validators: dict[str, Validator | None] = {
            name: as_validator(entry) for name, entry in self._entries.items()
        }

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Any:
        """Return the raw registry entry for ``name``."""

        return self._entries.get(name)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._entries)

    def validate(self, name: str, data: Any) -> Any:
        """Return the value to store for a payload of type ``name``.

        Raises :class:`ValidationError` when the registered validator rejects
        ``data``. Types without a validator, including unregistered ones, pass
        ``data`` through unchanged.
        """

        if name not in self._entries:
            logger.warning("Notification type %r is not registered; data is not validated", name)
            return data

        validator = self._validators[name]
        if validator is None:
            return data

        result = _normalize_result(validator.validate(data))
        if isinstance(result, ValidationFailure):
            raise ValidationError(
                result.issues, f"Invalid data for notification type {name!r}"
            )
        return result.value


__all__ = [
    "PydanticValidator",
    "TypeRegistry",
    "ValidationFailure",
    "ValidationResult",
    "ValidationSuccess",
    "Validator",
    "as_validator",
]
