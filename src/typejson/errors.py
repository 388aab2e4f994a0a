"""Error types raised while writing or reading JSON.

Every failure is a `SerializationError`. Frames that unwind through an object
graph append a trace line naming the member they were handling, so the final
message reports the path from the failing leaf back to the root.
"""

from __future__ import annotations

from typing import Literal


class SerializationError(Exception):
    """Failure during serialization or deserialization.

    Attributes:
        message: Base message, without trace lines
        trace: Member path entries, innermost first. Only ever appended to.

    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.trace: list[str] = []

    def __str__(self) -> str:
        if not self.trace:
            return self.message
        lines = [self.message] if self.message else []
        lines.append("Serialization trace:")
        lines.extend(self.trace)
        return "\n".join(lines)

    def add_trace(self, info: str) -> None:
        """Append a location in the object graph to the trace.

        Hooks and serializers can catch a `SerializationError`, add their own
        location and re-raise it.

        Raises:
            ValueError: If info is empty

        """
        if not info:
            msg = "info cannot be empty."
            raise ValueError(msg)
        self.trace.append(info)

    def caused_by(self, exc_type: type[BaseException]) -> bool:
        """Return True if any exception in the `__cause__` chain is of exc_type."""
        cause = self.__cause__
        seen: set[int] = set()
        while cause is not None and id(cause) not in seen:
            if isinstance(cause, exc_type):
                return True
            seen.add(id(cause))
            cause = cause.__cause__
        return False

    @classmethod
    def wrap(cls, exc: BaseException) -> SerializationError:
        """Wrap a foreign exception, keeping it as `__cause__`."""
        error = cls(str(exc) or type(exc).__name__)
        error.__cause__ = exc
        return error


class ProtocolError(SerializationError):
    """Writer calls violate the object/array grammar."""


class ConfigurationError(SerializationError):
    """A configuration call references something that does not exist."""


type InstantiationReason = Literal[
    "abstract",
    "array-type-mismatch",
    "missing-no-arg-constructor",
]


class InstantiationError(SerializationError):
    """A type could not be instantiated for reading.

    Attributes:
        cls: The type that could not be created
        reason: Why construction failed

    """

    def __init__(self, message: str, cls: type, reason: InstantiationReason) -> None:
        super().__init__(message)
        self.cls = cls
        self.reason = reason


class MemberNotFoundError(SerializationError):
    """Input names a member that the target type does not have.

    Attributes:
        member: The unknown member name
        owner: The type that was searched

    """

    def __init__(self, member: str, owner: type, owner_name: str) -> None:
        super().__init__(f"Field not found: {member} ({owner_name})")
        self.member = member
        self.owner = owner


class TypeMismatchError(SerializationError):
    """The shape of a value does not match the requested static type."""


class ConversionError(SerializationError):
    """A scalar cannot be converted to the requested type."""


class UnknownTypeError(SerializationError):
    """A type tag in the input does not resolve to any known class."""


class JsonSyntaxError(SerializationError):
    """Input text is not well-formed.

    Attributes:
        line: 1-based line of the offending character
        column: 1-based column of the offending character

    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"Line {line}, column {column}: {message}")
        self.line = line
        self.column = column
