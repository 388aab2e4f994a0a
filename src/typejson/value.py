"""Value tree: the parsed form of a JSON document."""

from __future__ import annotations

import enum
import io
import math
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from typejson.errors import ConversionError
from typejson.output import OutputType, is_number_literal

if TYPE_CHECKING:
    from typejson.writer import JsonWriter


class ValueType(enum.Enum):
    """Kind of a value tree node."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


_TRUE = frozenset({"true", "True", "TRUE", "1"})
_FALSE = frozenset({"false", "False", "FALSE", "0"})
_SPECIAL_FLOATS = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}


class JsonValue:
    """One node of a value tree.

    Scalars keep their literal text, so a number is not rounded until it is
    requested as a specific Python type. Object children are an ordered list of
    `(name, node)` pairs; names are not required to be unique.
    """

    __slots__ = ("_children", "_text", "type")

    def __init__(
        self,
        type: ValueType,  # noqa: A002
        text: str | None = None,
        children: list[tuple[str | None, JsonValue]] | None = None,
    ) -> None:
        self.type = type
        self._text = text
        self._children = children if children is not None else []

    # -- builders ----------------------------------------------------------

    @classmethod
    def null(cls) -> JsonValue:
        return cls(ValueType.NULL, "null")

    @classmethod
    def boolean(cls, value: bool) -> JsonValue:  # noqa: FBT001
        return cls(ValueType.BOOLEAN, "true" if value else "false")

    @classmethod
    def number(cls, value: int | float | str) -> JsonValue:
        """Create a number node from a number or its literal text."""
        if isinstance(value, str):
            if not is_number_literal(value):
                msg = f"Not a number literal: {value!r}"
                raise ConversionError(msg)
            return cls(ValueType.NUMBER, value)
        return cls(ValueType.NUMBER, OutputType.JSON.quote_value(value))

    @classmethod
    def string(cls, value: str) -> JsonValue:
        return cls(ValueType.STRING, value)

    @classmethod
    def array(cls, items: Iterable[JsonValue] = ()) -> JsonValue:
        return cls(ValueType.ARRAY, None, [(None, item) for item in items])

    @classmethod
    def object(
        cls,
        members: Mapping[str, JsonValue] | Iterable[tuple[str, JsonValue]] = (),
    ) -> JsonValue:
        pairs = members.items() if isinstance(members, Mapping) else members
        return cls(ValueType.OBJECT, None, list(pairs))

    @classmethod
    def of(cls, data: Any) -> JsonValue:
        """Build a tree from plain Python data (dicts, lists and scalars)."""
        if isinstance(data, JsonValue):
            return data
        if data is None:
            return cls.null()
        if isinstance(data, bool):
            return cls.boolean(data)
        if isinstance(data, int | float):
            return cls.number(data)
        if isinstance(data, str):
            return cls.string(data)
        if isinstance(data, Mapping):
            return cls.object((str(k), cls.of(v)) for k, v in data.items())
        if isinstance(data, Iterable):
            return cls.array(cls.of(item) for item in data)
        msg = f"Cannot build a value tree from {type(data).__name__}"
        raise ConversionError(msg)

    # -- kind --------------------------------------------------------------

    def is_object(self) -> bool:
        return self.type is ValueType.OBJECT

    def is_array(self) -> bool:
        return self.type is ValueType.ARRAY

    def is_string(self) -> bool:
        return self.type is ValueType.STRING

    def is_number(self) -> bool:
        return self.type is ValueType.NUMBER

    def is_boolean(self) -> bool:
        return self.type is ValueType.BOOLEAN

    def is_null(self) -> bool:
        return self.type is ValueType.NULL

    def is_value(self) -> bool:
        """Return True for scalar nodes, including null."""
        return self.type not in (ValueType.OBJECT, ValueType.ARRAY)

    # -- children ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[Any]:
        """Iterate children of an array or `(name, child)` pairs of an object."""
        if self.type is ValueType.OBJECT:
            return iter(list(self._children))
        return (child for _, child in list(self._children))

    def __getitem__(self, key: int | str) -> JsonValue:
        if isinstance(key, str):
            child = self.get(key)
            if child is None:
                raise KeyError(key)
            return child
        return self._children[key][1]

    def __contains__(self, name: object) -> bool:
        return any(n == name for n, _ in self._children)

    def get(self, name: str) -> JsonValue | None:
        """Return the first child with the given name, or None."""
        for child_name, child in self._children:
            if child_name == name:
                return child
        return None

    def names(self) -> list[str]:
        return [name for name, _ in self._children if name is not None]

    def add(self, name: str, child: JsonValue) -> JsonValue:
        """Append a named child to an object node and return self."""
        if self.type is not ValueType.OBJECT:
            msg = f"Cannot add a named child to a {self.type.value} node"
            raise ConversionError(msg)
        self._children.append((name, child))
        return self

    def append(self, child: JsonValue) -> JsonValue:
        """Append a child to an array node and return self."""
        if self.type is not ValueType.ARRAY:
            msg = f"Cannot append to a {self.type.value} node"
            raise ConversionError(msg)
        self._children.append((None, child))
        return self

    def remove(self, name: str) -> JsonValue | None:
        """Remove the first child with the given name and return it."""
        for i, (child_name, child) in enumerate(self._children):
            if child_name == name:
                del self._children[i]
                return child
        return None

    def without(self, name: str) -> JsonValue:
        """Return a shallow copy of this object node minus the named children."""
        return JsonValue(
            self.type,
            self._text,
            [(n, c) for n, c in self._children if n != name],
        )

    # -- scalar coercion ---------------------------------------------------

    def as_str(self) -> str:
        if self.type in (ValueType.OBJECT, ValueType.ARRAY):
            msg = f"Cannot convert {self.type.value} to str"
            raise ConversionError(msg)
        return self._text if self._text is not None else "null"

    def as_int(self) -> int:
        """Parse the literal as an int, truncating fractional numbers."""
        text = self._number_text("int")
        try:
            return int(text)
        except ValueError:
            number = self.as_float()
        if not math.isfinite(number):
            msg = f"Cannot convert {text!r} to int"
            raise ConversionError(msg)
        return int(number)

    def as_float(self) -> float:
        text = self._number_text("float")
        if text in _SPECIAL_FLOATS:
            return _SPECIAL_FLOATS[text]
        return float(text)

    def as_bool(self) -> bool:
        text = self._scalar_text("bool")
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        msg = f"Cannot convert {text!r} to bool"
        raise ConversionError(msg)

    def _scalar_text(self, target: str) -> str:
        if self.type in (ValueType.OBJECT, ValueType.ARRAY, ValueType.NULL):
            msg = f"Cannot convert {self.type.value} to {target}"
            raise ConversionError(msg)
        return (self._text or "").strip()

    def _number_text(self, target: str) -> str:
        text = self._scalar_text(target)
        if not is_number_literal(text):
            msg = f"Cannot convert {text!r} to {target}"
            raise ConversionError(msg)
        return text

    # -- conversion --------------------------------------------------------

    def to_python(self) -> Any:
        """Convert to plain Python data.

        Numbers without a fraction or exponent become int, other numbers float.
        """
        match self.type:
            case ValueType.NULL:
                return None
            case ValueType.BOOLEAN:
                return self.as_bool()
            case ValueType.STRING:
                return self._text
            case ValueType.NUMBER:
                text = self._text or ""
                if text.lstrip("-").isdigit():
                    return int(text)
                return self.as_float()
            case ValueType.ARRAY:
                return [child.to_python() for _, child in self._children]
            case ValueType.OBJECT:
                return {name: child.to_python() for name, child in self._children}

    def write(self, writer: JsonWriter) -> None:
        """Emit this node through a writer, at the writer's current position."""
        match self.type:
            case ValueType.OBJECT:
                writer.begin_object()
                for name, child in self._children:
                    writer.name(name or "")
                    child.write(writer)
                writer.end()
            case ValueType.ARRAY:
                writer.begin_array()
                for _, child in self._children:
                    child.write(writer)
                writer.end()
            case ValueType.STRING:
                writer.value(self._text)
            case _:
                writer.literal(self._text or "null")

    def to_json(self, output_type: OutputType = OutputType.JSON) -> str:
        """Render this node as compact text in the given dialect."""
        from typejson.writer import JsonWriter

        buffer = io.StringIO()
        writer = JsonWriter(buffer, output_type)
        self.write(writer)
        return buffer.getvalue()

    # -- dunder ------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        return (
            self.type is other.type
            and self._text == other._text
            and self._children == other._children
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.type in (ValueType.OBJECT, ValueType.ARRAY):
            return f"JsonValue({self.type.value}, {self.to_json()})"
        return f"JsonValue({self.type.value}, {self._text!r})"

    def __str__(self) -> str:
        return self.to_json()
