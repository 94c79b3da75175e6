"""Storage-boundary serialization for derived statistics.

Derived values are typed dataclasses inside the engine. At the storage
boundary they are written as a tagged JSON envelope::

    {"type": "DerivedSeasonStats", "data": {...}}

Fractions are encoded as ``"n/d"`` strings and ``UNDEFINED`` as ``null``;
decoding is driven by the dataclass field annotations, so a ``null`` becomes
``UNDEFINED`` for a ``StatValue`` field and ``None`` for an optional one.

Usage:
    serializer = EnvelopeSerializer(DerivedSeasonStats)
    payload = serializer.serialize(stats)
    stats = serializer.deserialize(payload)
"""

from __future__ import annotations

import json
import types
from dataclasses import fields, is_dataclass
from fractions import Fraction
from typing import Any, Generic, Protocol, TypeVar, Union, get_args, get_origin, get_type_hints

from bricks.domain.statistic import UNDEFINED, UndefinedStatistic

T = TypeVar("T")

_NONE_TYPE = type(None)


class SerializationError(ValueError):
    """Raised when a stored payload does not match the expected envelope."""


class Serializer(Protocol[T]):
    """Protocol for converting values to and from bytes for cache storage."""

    def serialize(self, value: T) -> bytes: ...

    def deserialize(self, data: bytes) -> T: ...


class EnvelopeSerializer(Generic[T]):
    """Serializer for one frozen dataclass type, wrapped in a tagged envelope."""

    def __init__(self, dataclass_type: type[T]) -> None:
        if not is_dataclass(dataclass_type):
            raise TypeError(f"{dataclass_type} is not a dataclass")
        self._dataclass_type = dataclass_type
        self._tag = dataclass_type.__name__

    @property
    def tag(self) -> str:
        return self._tag

    def serialize(self, value: T) -> bytes:
        if not isinstance(value, self._dataclass_type):
            raise TypeError(f"Expected {self._tag}, got {type(value).__name__}")
        envelope = {"type": self._tag, "data": encode(value)}
        return json.dumps(envelope, separators=(",", ":"), sort_keys=True).encode("utf-8")

    def deserialize(self, data: bytes) -> T:
        try:
            envelope = json.loads(data)
        except ValueError as e:
            raise SerializationError(f"Invalid JSON payload for {self._tag}: {e}") from e
        if not isinstance(envelope, dict) or envelope.get("type") != self._tag:
            found = envelope.get("type") if isinstance(envelope, dict) else type(envelope).__name__
            raise SerializationError(f"Expected envelope of type {self._tag!r}, found {found!r}")
        try:
            return decode(self._dataclass_type, envelope["data"])
        except SerializationError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            # Stored shape no longer matches the type
            raise SerializationError(f"Cannot decode {self._tag}: {e}") from e


def encode(value: Any) -> Any:
    """Convert a value into JSON-compatible primitives."""
    if value is UNDEFINED:
        return None
    if isinstance(value, Fraction):
        return str(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: encode(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (tuple, list)):
        return [encode(item) for item in value]
    return value


def decode(tp: Any, raw: Any) -> Any:
    """Rebuild a value of annotated type ``tp`` from JSON primitives."""
    origin = get_origin(tp)

    if origin is Union or origin is types.UnionType:
        args = get_args(tp)
        if raw is None:
            if UndefinedStatistic in args:
                return UNDEFINED
            if _NONE_TYPE in args:
                return None
            raise SerializationError(f"null is not valid for {tp}")
        for arg in args:
            if arg is _NONE_TYPE or arg is UndefinedStatistic:
                continue
            return decode(arg, raw)
        raise SerializationError(f"No decodable member in {tp}")

    if origin is tuple:
        args = get_args(tp)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(decode(args[0], item) for item in raw)
        return tuple(decode(arg, item) for arg, item in zip(args, raw, strict=True))

    if tp is Fraction:
        return Fraction(raw)

    if is_dataclass(tp):
        hints = get_type_hints(tp)
        kwargs = {f.name: decode(hints[f.name], raw[f.name]) for f in fields(tp) if f.name in raw}
        return tp(**kwargs)

    return raw
