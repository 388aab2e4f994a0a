"""Builder-style emitter for JSON text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from typejson.errors import ProtocolError
from typejson.output import OutputType

if TYPE_CHECKING:
    from types import TracebackType
    from typing import TextIO


@dataclass
class _Frame:
    """One open object or array."""

    array: bool
    needs_comma: bool = False
    names: set[str] = field(default_factory=set)


class JsonWriter:
    """Writes JSON text from a sequence of structural calls.

    Objects and arrays are opened with `begin_object`/`begin_array` and closed
    with `end`. Inside an object every value or container must be preceded by
    `name`. Calls that break this grammar raise `ProtocolError`.

    A writer holds the state of exactly one document and is not thread-safe.

    Example:
        writer = JsonWriter(buffer)
        writer.begin_object().set("name", "Ada").name("tags").begin_array()
        writer.value("x").end().end()

    """

    def __init__(self, out: TextIO, output_type: OutputType = OutputType.JSON) -> None:
        self._out = out
        self._stack: list[_Frame] = []
        self._named = False
        self._root_written = False
        self.output_type = output_type

    @property
    def depth(self) -> int:
        """Number of open containers."""
        return len(self._stack)

    @property
    def at_root(self) -> bool:
        """True while no container is open."""
        return not self._stack

    def name(self, name: str) -> Self:
        """Write a member name inside the current object."""
        current = self._stack[-1] if self._stack else None
        if current is None or current.array:
            msg = "Current item must be an object."
            raise ProtocolError(msg)
        if self._named:
            msg = "Expected an object, array, or value since a name was set."
            raise ProtocolError(msg)
        if name in current.names:
            msg = f"Duplicate name in object: {name}"
            raise ProtocolError(msg)
        current.names.add(name)
        if current.needs_comma:
            self._out.write(",")
        else:
            current.needs_comma = True
        self._out.write(self.output_type.quote_name(name))
        self._out.write(":")
        self._named = True
        return self

    def begin_object(self, name: str | None = None) -> Self:
        """Open an object, optionally as the value of a new member."""
        if name is not None:
            self.name(name)
        self._before_value()
        self._stack.append(_Frame(array=False))
        self._out.write("{")
        return self

    def begin_array(self, name: str | None = None) -> Self:
        """Open an array, optionally as the value of a new member."""
        if name is not None:
            self.name(name)
        self._before_value()
        self._stack.append(_Frame(array=True))
        self._out.write("[")
        return self

    def value(self, value: Any) -> Self:
        """Write a scalar: None, bool, int, float or anything else as text."""
        self._before_value()
        self._out.write(self.output_type.quote_value(value))
        return self

    def literal(self, text: str) -> Self:
        """Write pre-rendered literal text (a number, true, false or null)."""
        self._before_value()
        self._out.write(text)
        return self

    def set(self, name: str, value: Any) -> Self:
        """Write a named scalar member."""
        return self.name(name).value(value)

    def end(self) -> Self:
        """Close the innermost open object or array."""
        if self._named:
            msg = "Expected an object, array, or value since a name was set."
            raise ProtocolError(msg)
        if not self._stack:
            msg = "No open object or array to end."
            raise ProtocolError(msg)
        frame = self._stack.pop()
        self._out.write("]" if frame.array else "}")
        return self

    def flush(self) -> None:
        self._out.flush()

    def close(self) -> None:
        """Close every open container and the underlying stream.

        A dangling member name is completed with null.
        """
        if self._named:
            self.value(None)
        while self._stack:
            self.end()
        self._out.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self._out.close()

    def _before_value(self) -> None:
        current = self._stack[-1] if self._stack else None
        if current is None:
            if self._root_written:
                msg = "Only one root value can be written."
                raise ProtocolError(msg)
            self._root_written = True
        elif current.array:
            if current.needs_comma:
                self._out.write(",")
            else:
                current.needs_comma = True
        else:
            if not self._named:
                msg = "Name must be set."
                raise ProtocolError(msg)
            self._named = False
