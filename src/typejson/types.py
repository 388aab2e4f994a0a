"""Static type normalization and value-shape classification.

A static type is whatever annotation is known before a value is inspected: a
class, a parameterized generic such as `list[int]` or `dict[str, Point]`, an
optional, an `Annotated` wrapper or a PEP 695 alias. `static_type` folds all of
these into a `StaticType` carrying the runtime class plus the element, key and
item types the engine needs when it recurses.
"""

from __future__ import annotations

import builtins
import enum
import sys
import types
from collections import abc
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    ForwardRef,
    Literal,
    TypeAliasType,
    TypeVar,
    Union,
    get_args,
    get_origin,
)


class Shape(enum.Enum):
    """How values of a runtime class are represented in text."""

    SCALAR = "scalar"
    ENUM = "enum"
    SEQUENCE = "sequence"
    ARRAY = "array"
    MAPPING = "mapping"
    OBJECT = "object"


@dataclass(frozen=True)
class StaticType:
    """A normalized static type.

    Attributes:
        cls: Runtime class, or None when the static type is absent
        element: Element type of a sequence, value type of a mapping
        key: Key type of a mapping
        items: Per-position types of a fixed-size tuple annotation

    """

    cls: type | None = None
    element: StaticType | None = None
    key: StaticType | None = None
    items: tuple[StaticType, ...] | None = None

    @property
    def absent(self) -> bool:
        return self.cls is None

    def with_element(self, element: StaticType | None) -> StaticType:
        """Return a copy whose element type is replaced when element is given."""
        if element is None or element.absent:
            return self
        return StaticType(self.cls, element, self.key, self.items)

    def item(self, index: int) -> StaticType | None:
        """Return the static type of one position of a fixed-size array."""
        if self.items is not None:
            return self.items[index] if index < len(self.items) else None
        return self.element


ABSENT = StaticType()

_BUILTIN_SCALARS = (bool, int, float, str)
_BYTES_LIKE = (bytes, bytearray, memoryview)

# Abstract collection types read back as their canonical concrete type.
_CONCRETE: dict[type, type] = {
    abc.Iterable: list,
    abc.Collection: list,
    abc.Sequence: list,
    abc.MutableSequence: list,
    abc.Reversible: list,
    abc.Set: set,
    abc.MutableSet: set,
    abc.Mapping: dict,
    abc.MutableMapping: dict,
}


def static_type(annotation: Any) -> StaticType:
    """Normalize an annotation into a `StaticType`.

    `Any`, `object`, `None`, type variables, string forward references and
    unions of more than one non-None member are absent. `X | None` is `X`.

    Args:
        annotation: A type annotation, a class, a `StaticType` or None

    Returns:
        The normalized static type

    """
    if isinstance(annotation, StaticType):
        return annotation
    if annotation is None or annotation is Any or annotation is object:
        return ABSENT
    if isinstance(annotation, TypeVar | ForwardRef | str):
        return ABSENT
    if isinstance(annotation, TypeAliasType):
        return static_type(annotation.__value__)

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return static_type(args[0])
    if isinstance(origin, TypeAliasType):
        # Parameterized alias: substitute positional arguments for its params.
        substitutions = dict(zip(origin.__type_params__, args, strict=False))
        return _substituted(origin.__value__, substitutions)
    if origin is Union or isinstance(annotation, types.UnionType):
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return static_type(members[0])
        return ABSENT
    if origin is Literal:
        kinds = {type(a) for a in args}
        return StaticType(kinds.pop()) if len(kinds) == 1 else ABSENT
    if origin is type:
        return StaticType(type)

    if isinstance(origin, type):
        return _generic(origin, args)
    if isinstance(annotation, type):
        return StaticType(annotation)
    return ABSENT


def _generic(origin: type, args: tuple[Any, ...]) -> StaticType:
    if not args:
        return StaticType(origin)
    if issubclass(origin, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return StaticType(origin, element=static_type(args[0]))
        if args == ((),):
            return StaticType(origin, items=())
        return StaticType(origin, items=tuple(static_type(a) for a in args))
    if issubclass(origin, abc.Mapping) and len(args) == 2:
        return StaticType(
            origin,
            element=static_type(args[1]),
            key=static_type(args[0]),
        )
    if issubclass(origin, abc.Iterable):
        return StaticType(origin, element=static_type(args[0]))
    return StaticType(origin)


def _substituted(value: Any, substitutions: dict[Any, Any]) -> StaticType:
    if value in substitutions:
        return static_type(substitutions[value])
    origin = get_origin(value)
    args = get_args(value)
    if origin is None or not args:
        return static_type(value)
    replaced = tuple(substitutions.get(a, a) for a in args)
    try:
        return static_type(origin[replaced])
    except TypeError:
        return static_type(value)


def shape_of(cls: type) -> Shape:
    """Classify a runtime class.

    Enums are checked before scalars, so `IntEnum` and `StrEnum` members are
    enums. Tuples are the fixed-size array kind.
    """
    if issubclass(cls, enum.Enum):
        return Shape.ENUM
    if issubclass(cls, _BUILTIN_SCALARS):
        return Shape.SCALAR
    if issubclass(cls, tuple):
        return Shape.ARRAY
    if issubclass(cls, abc.Mapping):
        return Shape.MAPPING
    if issubclass(cls, abc.Collection) and not issubclass(cls, _BYTES_LIKE):
        return Shape.SEQUENCE
    if cls in _CONCRETE:
        return shape_of(_CONCRETE[cls])
    return Shape.OBJECT


def concrete_class(cls: type) -> type:
    """Return the class to instantiate for an abstract collection type."""
    return _CONCRETE.get(cls, cls)


def qualified_name(cls: type) -> str:
    """Return `module.QualName`, or the bare name for builtins."""
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def resolve_name(name: str) -> type | None:
    """Find the class a qualified name refers to.

    Only modules that are already imported are consulted. Nothing named by
    input text is ever imported.

    Args:
        name: A name produced by `qualified_name`

    Returns:
        The class, or None if the name does not resolve to one

    """
    if not name:
        return None
    parts = name.split(".")
    candidates: list[tuple[Any, list[str]]] = [(builtins, parts)]
    for split in range(len(parts) - 1, 0, -1):
        module = sys.modules.get(".".join(parts[:split]))
        if module is not None:
            candidates.append((module, parts[split:]))
    for target, path in candidates:
        for attr in path:
            target = getattr(target, attr, None)
            if target is None:
                break
        if isinstance(target, type):
            return target
    return None
