"""Custom write/read hooks and the built-in serializers.

There are two ways to take over how a type is written and read:

- A class derives from `JsonSerializable` and writes and reads its own members.
  The engine still opens the object and writes its type tag.
- A `JsonSerializer` is registered for a class with `Json.set_serializer`. It
  controls the whole shape and may write a bare scalar or an array.
"""

from __future__ import annotations

import base64
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from typejson.errors import ConversionError, UnknownTypeError
from typejson.types import StaticType, qualified_name, resolve_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from typejson.engine import Json
    from typejson.value import JsonValue


class JsonSerializable(ABC):
    """Base for classes that write and read their own members."""

    @abstractmethod
    def write_json(self, json: Json) -> None:
        """Write members with the `Json.write_*` primitives.

        The object is already open and tagged; do not end it.
        """

    @abstractmethod
    def read_json(self, json: Json, node: JsonValue) -> None:
        """Populate this instance from an object node."""


class JsonSerializer[T](ABC):
    """Full override of how one class is written and read."""

    @abstractmethod
    def write(self, json: Json, value: T, known_type: StaticType) -> None:
        """Write value at the current position.

        Args:
            json: The engine, positioned where one value is expected
            value: The value to write
            known_type: Static type from context, possibly absent

        """

    @abstractmethod
    def read(self, json: Json, node: JsonValue, cls: type | None) -> T:
        """Create a value from node. A type tag has already been removed."""


class ReadOnlySerializer[T](JsonSerializer[T]):
    """Serializer that only reads; writing produces nothing."""

    def write(self, json: Json, value: T, known_type: StaticType) -> None:
        pass


class FuncSerializer[T](JsonSerializer[T]):
    """Serializer built from an encode/decode pair.

    The encoded form is written bare when the static type is exactly the
    registered class, and as `{<type_name>: tag, "value": encoded}` otherwise
    so the value can be read back without context. Reading accepts both forms.

    Example:
        json.set_serializer(
            Money,
            FuncSerializer(Money, encode=str, decode=Money.parse),
        )

    """

    def __init__(
        self,
        cls: type[T],
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
        encoded_type: Any = None,
    ) -> None:
        """Create a serializer.

        Args:
            cls: The class this serializer is registered for
            encode: Converts a value to text-representable data
            decode: Converts data read back into a value
            encoded_type: Static type of the encoded data, used when reading it

        """
        self.cls = cls
        self.encode = encode
        self.decode = decode
        self.encoded_type = encoded_type

    def write(self, json: Json, value: T, known_type: StaticType) -> None:
        encoded = self.encode(value)
        if known_type.cls is self.cls or json.config.type_name is None:
            json.write_value(encoded, self.encoded_type)
            return
        json.write_object_start(type(value), known_type)
        json.write_value(encoded, self.encoded_type, name="value")
        json.write_object_end()

    def read(self, json: Json, node: JsonValue, cls: type | None) -> T:
        if node.is_object():
            inner = node.get("value")
            if inner is None:
                msg = f"Missing 'value' for {qualified_name(self.cls)}"
                raise ConversionError(msg)
            node = inner
        data = json.read_value(node, self.encoded_type)
        try:
            return self.decode(data)
        except (TypeError, ValueError, ArithmeticError) as exc:
            msg = f"Cannot convert {node} to {qualified_name(self.cls)}: {exc}"
            raise ConversionError(msg) from exc


def _decode_class(name: str) -> type:
    cls = resolve_name(name)
    if cls is None:
        msg = f"Unknown class: {name}"
        raise UnknownTypeError(msg)
    return cls


def _decode_complex(parts: list[float]) -> complex:
    real, imag = parts
    return complex(real, imag)


def builtin_serializers() -> list[FuncSerializer[Any]]:
    """Create the serializers for standard-library value types."""
    return [
        FuncSerializer(datetime, datetime.isoformat, datetime.fromisoformat, str),
        FuncSerializer(date, date.isoformat, date.fromisoformat, str),
        FuncSerializer(time, time.isoformat, time.fromisoformat, str),
        FuncSerializer(
            timedelta,
            timedelta.total_seconds,
            lambda s: timedelta(seconds=s),
            float,
        ),
        FuncSerializer(Decimal, str, Decimal, str),
        FuncSerializer(uuid.UUID, str, uuid.UUID, str),
        FuncSerializer(
            bytes,
            lambda b: base64.b64encode(b).decode("ascii"),
            lambda s: base64.b64decode(s, validate=True),
            str,
        ),
        FuncSerializer(
            bytearray,
            lambda b: base64.b64encode(b).decode("ascii"),
            lambda s: bytearray(base64.b64decode(s, validate=True)),
            str,
        ),
        FuncSerializer(complex, lambda c: [c.real, c.imag], _decode_complex, list[float]),
        FuncSerializer(type, qualified_name, _decode_class, str),
    ]


def register_builtins(json: Json) -> None:
    """Register `builtin_serializers` on an engine."""
    for serializer in builtin_serializers():
        json.set_serializer(serializer.cls, serializer)
