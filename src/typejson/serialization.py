"""Module-level serialization functions backed by a shared default engine."""

from __future__ import annotations

from typing import Any

from typejson.engine import Json

_json = Json()


def default_engine() -> Json:
    """Return the engine used by the module-level functions.

    Aliases and serializers registered on it apply to every later call of
    `to_json`, `from_json` and `pretty_print_json`.
    """
    return _json


def to_json(obj: Any, known_type: Any = None, element_type: Any = None) -> str:
    """Serialize an object graph to strict JSON text.

    Args:
        obj: Root value
        known_type: Static type of the root; defaults to `type(obj)`
        element_type: Element type if obj is a container

    Returns:
        JSON text

    Raises:
        SerializationError: If a member cannot be written

    """
    return _json.to_json(obj, known_type, element_type)


def from_json(text: str | bytes, cls: Any = None, element_type: Any = None) -> Any:
    """Deserialize JSON text.

    Args:
        text: JSON text, relaxed forms included
        cls: Expected type of the root; None reads it untyped
        element_type: Element type if the root is a container

    Returns:
        The rebuilt value

    Raises:
        JsonSyntaxError: If text is malformed
        SerializationError: If the text does not fit cls

    """
    return _json.from_json(text, cls, element_type)


def pretty_print_json(obj: Any, *, fields_on_same_line: bool = False) -> str:
    """Render an object, JSON text or value tree as indented text."""
    return _json.pretty_print(obj, fields_on_same_line=fields_on_same_line)
