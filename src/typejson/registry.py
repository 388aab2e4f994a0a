"""Per-type cache of serializable members, tag aliases, serializers and prototypes."""

from __future__ import annotations

import dataclasses
import inspect
import logging
import sys
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    ClassVar,
    Final,
    get_args,
    get_origin,
    get_type_hints,
)

from typejson.errors import ConfigurationError
from typejson.types import StaticType, qualified_name, resolve_name, static_type

if TYPE_CHECKING:
    from collections.abc import Callable

    from typejson.serializers import JsonSerializer

logger = logging.getLogger(__name__)


class Transient:
    """Annotation marker for members that are never written or read.

    Example:
        class Session:
            user: str
            cache: Annotated[dict[str, str], Transient]

    """


class Deprecated:
    """Annotation marker for members skipped when `ignore_deprecated` is set."""


MISSING: Final = object()
"""Placeholder for a member attribute that is not set on an instance."""


@dataclass
class FieldMetadata:
    """One serializable member of a type.

    Attributes:
        name: Attribute name, also the name used in text
        declared: Normalized declared type; absent for unannotated slots
        element_override: Element type set with `set_element_type`
        deprecated: True if annotated with `Deprecated`

    """

    name: str
    declared: StaticType
    element_override: StaticType | None = None
    deprecated: bool = False

    @property
    def static_type(self) -> StaticType:
        """Declared type with the element override applied."""
        return self.declared.with_element(self.element_override)

    @property
    def element_type(self) -> StaticType | None:
        if self.element_override is not None:
            return self.element_override
        return self.declared.element


class TypeRegistry:
    """Type metadata owned by one engine.

    Member lists are computed on first use of a type and cached. The registry
    is not safe for concurrent first use of the same type from several threads.
    """

    def __init__(self, *, sort_fields: bool = False, include_private: bool = False) -> None:
        self.sort_fields = sort_fields
        self.include_private = include_private
        self._fields: dict[type, dict[str, FieldMetadata]] = {}
        self._tag_to_class: dict[str, type] = {}
        self._class_to_tag: dict[type, str] = {}
        self._serializers: dict[type, JsonSerializer[Any]] = {}
        self._prototypes: dict[type, list[Any] | None] = {}

    # -- members -----------------------------------------------------------

    def fields(self, cls: type) -> dict[str, FieldMetadata]:
        """Return the ordered members of cls, computing them on first use."""
        cached = self._fields.get(cls)
        if cached is None:
            cached = self._cache_fields(cls)
            self._fields[cls] = cached
        return cached

    def field(self, cls: type, name: str) -> FieldMetadata | None:
        """Look up a member by its text name.

        An exact match wins; otherwise `-` and spaces are read as `_`.
        """
        members = self.fields(cls)
        found = members.get(name)
        if found is None:
            found = members.get(name.replace("-", "_").replace(" ", "_"))
        return found

    def set_element_type(self, cls: type, name: str, element_type: Any) -> None:
        """Override the element type of a container member.

        Raises:
            ConfigurationError: If cls has no member with that name

        """
        metadata = self.fields(cls).get(name)
        if metadata is None:
            msg = f"Field not found: {name} ({qualified_name(cls)})"
            raise ConfigurationError(msg)
        metadata.element_override = static_type(element_type)

    def _cache_fields(self, cls: type) -> dict[str, FieldMetadata]:
        members: dict[str, FieldMetadata] = {}
        for klass in reversed(cls.__mro__):
            if klass is object:
                continue
            for name, annotation in _class_annotations(klass).items():
                if not self._serializable_name(name) or _is_static(annotation):
                    members.pop(name, None)
                    continue
                metadata = _annotated_metadata(annotation)
                if any(_is_marker(m, Transient) for m in metadata):
                    members.pop(name, None)
                    continue
                existing = members.get(name)
                members[name] = FieldMetadata(
                    name=name,
                    declared=static_type(annotation),
                    element_override=existing.element_override if existing else None,
                    deprecated=any(_is_marker(m, Deprecated) for m in metadata),
                )
        for klass in cls.__mro__:
            for name in _slot_names(klass):
                if name not in members and self._serializable_name(name):
                    members[name] = FieldMetadata(name=name, declared=StaticType())
        if self.sort_fields:
            members = dict(sorted(members.items()))
        logger.debug("Cached %d fields for %s", len(members), qualified_name(cls))
        return members

    def _serializable_name(self, name: str) -> bool:
        if name.startswith("__"):
            return False
        return self.include_private or not name.startswith("_")

    # -- tags --------------------------------------------------------------

    def add_tag(self, tag: str, cls: type) -> None:
        """Register an alias written instead of the qualified class name."""
        self._tag_to_class[tag] = cls
        self._class_to_tag[cls] = tag

    def get_tag(self, cls: type) -> str | None:
        """Return the alias registered for cls, or None."""
        return self._class_to_tag.get(cls)

    def get_class(self, tag: str) -> type | None:
        """Return the class registered for an alias, or None."""
        return self._tag_to_class.get(tag)

    def tag_for(self, cls: type) -> str:
        """Return the alias for cls, falling back to its qualified name."""
        return self._class_to_tag.get(cls) or qualified_name(cls)

    def class_for(self, tag: str) -> type | None:
        """Resolve a tag by alias first, then as a qualified name."""
        cls = self._tag_to_class.get(tag)
        if cls is None:
            cls = resolve_name(tag)
        return cls

    # -- serializers -------------------------------------------------------

    def set_serializer(self, cls: type, serializer: JsonSerializer[Any]) -> None:
        self._serializers[cls] = serializer

    def get_serializer(self, cls: type) -> JsonSerializer[Any] | None:
        return self._serializers.get(cls)

    # -- prototypes --------------------------------------------------------

    def prototype(self, cls: type, factory: Callable[[type], Any]) -> list[Any] | None:
        """Return the default member values of cls, aligned with `fields`.

        The prototype is built once with factory. A type that cannot be
        created has no prototype, and that outcome is cached as well.
        """
        if cls in self._prototypes:
            return self._prototypes[cls]
        values: list[Any] | None
        try:
            instance = factory(cls)
        except Exception:  # noqa: BLE001
            logger.debug("No prototype for %s", qualified_name(cls))
            values = None
        else:
            values = [getattr(instance, name, MISSING) for name in self.fields(cls)]
        self._prototypes[cls] = values
        return values


def values_equal(current: Any, default: Any) -> bool:
    """Compare a member value with its prototype value.

    Values of different runtime types are never equal. Lists and tuples are
    compared element by element with the same rule.
    """
    if current is MISSING or default is MISSING:
        return False
    if type(current) is not type(default):
        return False
    if isinstance(current, list | tuple):
        return len(current) == len(default) and all(
            values_equal(a, b) for a, b in zip(current, default, strict=True)
        )
    try:
        return bool(current == default)
    except Exception:  # noqa: BLE001
        return False


def _class_annotations(klass: type) -> dict[str, Any]:
    """Return the annotations declared directly on klass, resolved where possible.

    String and `ForwardRef` annotations are resolved with `get_type_hints`.
    If that fails the raw annotations are kept; unresolved ones normalize to
    an absent static type.
    """
    raw = inspect.get_annotations(klass)
    if not raw:
        return {}
    # Module names win over class attributes; type parameters are not in either
    module = sys.modules.get(klass.__module__)
    localns = dict(vars(klass))
    localns.update(vars(module) if module is not None else {})
    localns.update({tp.__name__: tp for tp in getattr(klass, "__type_params__", ())})
    try:
        hints = get_type_hints(klass, localns=localns, include_extras=True)
    except (NameError, AttributeError, TypeError, SyntaxError):
        logger.debug("Cannot resolve annotations of %s", klass.__qualname__)
        return dict(raw)
    return {name: hints.get(name, annotation) for name, annotation in raw.items()}


def _is_static(annotation: Any) -> bool:
    if annotation is ClassVar or get_origin(annotation) is ClassVar:
        return True
    if annotation is dataclasses.InitVar or isinstance(annotation, dataclasses.InitVar):
        return True
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar", "InitVar"))
    return False


def _annotated_metadata(annotation: Any) -> tuple[Any, ...]:
    if get_origin(annotation) is Annotated:
        return get_args(annotation)[1:]
    return ()


def _is_marker(metadata: Any, marker: type) -> bool:
    return metadata is marker or isinstance(metadata, marker)


def _slot_names(klass: type) -> tuple[str, ...]:
    slots = klass.__dict__.get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    return tuple(s for s in slots if s not in ("__dict__", "__weakref__"))
