"""Type-directed engine that writes object graphs as JSON and reads them back."""

from __future__ import annotations

import dataclasses
import enum
import inspect
import io
import logging
from collections import abc
from pathlib import Path
from typing import TYPE_CHECKING, Any

from typejson import pretty, serializers
from typejson.config import JsonConfig
from typejson.errors import (
    ConversionError,
    InstantiationError,
    MemberNotFoundError,
    ProtocolError,
    SerializationError,
    TypeMismatchError,
    UnknownTypeError,
)
from typejson.output import OutputType
from typejson.reader import parse
from typejson.registry import MISSING, FieldMetadata, TypeRegistry, values_equal
from typejson.serializers import JsonSerializable
from typejson.types import (
    ABSENT,
    Shape,
    StaticType,
    concrete_class,
    qualified_name,
    shape_of,
    static_type,
)
from typejson.value import JsonValue
from typejson.writer import JsonWriter

if TYPE_CHECKING:
    import os
    from typing import TextIO

    from typejson.serializers import JsonSerializer

logger = logging.getLogger(__name__)


class Json:
    """Writes and reads object graphs guided by static types.

    Values are written according to their runtime type. A type tag member
    (`"class"` by default) is added only where the static type known from
    context would not be enough to read the value back. Reading uses the
    static type, the tags found in the input and the registered aliases and
    serializers to rebuild the graph.

    One engine owns its type cache. It can serve any number of sequential
    calls but must not be used from several threads at once.

    Example:
        json = Json(output_type=OutputType.MINIMAL)
        json.add_class_tag("point", Point)
        text = json.to_json(figures, list[Figure])
        figures = json.from_json(text, list[Figure])

    """

    def __init__(
        self,
        config: JsonConfig | None = None,
        *,
        register_builtins: bool = True,
        **options: Any,
    ) -> None:
        """Create an engine.

        Args:
            config: Full configuration; defaults to `JsonConfig()`
            register_builtins: Register serializers for datetime, Decimal,
                UUID, bytes and other standard-library value types
            **options: `JsonConfig` fields overriding those of config

        """
        base = config if config is not None else JsonConfig()
        self.config = dataclasses.replace(base, **options) if options else base
        self.registry = TypeRegistry(
            sort_fields=self.config.sort_fields,
            include_private=self.config.include_private,
        )
        self._writer: JsonWriter | None = None
        self._default_serializer: JsonSerializer[Any] | None = None
        if register_builtins:
            serializers.register_builtins(self)

    # -- configuration -----------------------------------------------------

    def add_class_tag(self, tag: str, cls: type) -> None:
        """Write tag instead of the qualified class name, and read it back."""
        self.registry.add_tag(tag, cls)

    def get_tag(self, cls: type) -> str | None:
        return self.registry.get_tag(cls)

    def get_class(self, tag: str) -> type | None:
        return self.registry.get_class(tag)

    def set_serializer[T](self, cls: type[T], serializer: JsonSerializer[T]) -> None:
        """Take over writing and reading of values whose class is exactly cls."""
        self.registry.set_serializer(cls, serializer)

    def set_default_serializer(self, serializer: JsonSerializer[Any] | None) -> None:
        """Set the hook that reads object nodes whose type cannot be resolved."""
        self._default_serializer = serializer

    def set_element_type(self, cls: type, field_name: str, element_type: Any) -> None:
        """Set the element type of a container member of cls.

        Raises:
            ConfigurationError: If cls has no such member

        """
        self.registry.set_element_type(cls, field_name, element_type)

    def ignore_unknown_field(self, cls: type, name: str) -> bool:  # noqa: ARG002
        """Decide whether an input member missing from cls is skipped.

        Override to decide per type or per name. Returning False makes the
        read fail with `MemberNotFoundError`.
        """
        return self.config.ignore_unknown_fields

    # -- writing: entry points ---------------------------------------------

    def to_json(self, obj: Any, known_type: Any = None, element_type: Any = None) -> str:
        """Write obj as text.

        Args:
            obj: Root value
            known_type: Static type of the root; defaults to `type(obj)`. Pass
                `object` to have a root scalar written as a tagged wrapper.
            element_type: Element type if obj is a container

        Returns:
            The text in the configured dialect

        """
        buffer = io.StringIO()
        self.to_stream(obj, buffer, known_type, element_type)
        return buffer.getvalue()

    def to_stream(
        self,
        obj: Any,
        out: TextIO,
        known_type: Any = None,
        element_type: Any = None,
    ) -> None:
        """Write obj to a text stream. The stream is flushed but not closed."""
        if known_type is None and obj is not None:
            known_type = type(obj)
        previous = self._writer
        self._writer = JsonWriter(out, self.config.output_type)
        try:
            self.write_value(obj, known_type, element_type)
            self._writer.flush()
        finally:
            self._writer = previous

    def to_file(
        self,
        obj: Any,
        path: str | os.PathLike[str],
        known_type: Any = None,
        element_type: Any = None,
    ) -> None:
        """Write obj to a UTF-8 file, replacing its contents.

        Raises:
            SerializationError: "Error writing file: <path>", caused by the
                underlying failure

        """
        try:
            with Path(path).open("w", encoding="utf-8") as out:
                self.to_stream(obj, out, known_type, element_type)
        except (OSError, SerializationError) as exc:
            msg = f"Error writing file: {path}"
            raise SerializationError(msg) from exc

    # -- writing: primitives -----------------------------------------------

    @property
    def writer(self) -> JsonWriter:
        """Writer of the write in progress."""
        if self._writer is None:
            msg = "No write in progress."
            raise ProtocolError(msg)
        return self._writer

    def write_value(
        self,
        value: Any,
        known_type: Any = None,
        element_type: Any = None,
        *,
        name: str | None = None,
    ) -> None:
        """Write one value, optionally as a named member of the open object."""
        if name is not None:
            self.writer.name(name)
        self._write(value, _static(known_type, element_type))

    def write_fields(self, obj: Any) -> None:
        """Write every member of obj that differs from its default value."""
        cls = type(obj)
        fields = self.registry.fields(cls)
        defaults = None
        if self.config.use_prototypes:
            defaults = self.registry.prototype(cls, self.new_instance)
        for index, metadata in enumerate(fields.values()):
            if metadata.deprecated and self.config.ignore_deprecated:
                continue
            value = getattr(obj, metadata.name, MISSING)
            if value is MISSING:
                continue
            if defaults is not None and values_equal(value, defaults[index]):
                continue
            logger.debug("Writing field: %s (%s)", metadata.name, qualified_name(cls))
            self._write_member(cls, metadata.name, value, metadata.static_type)

    def write_field(
        self,
        obj: Any,
        field_name: str,
        json_name: str | None = None,
        element_type: Any = None,
    ) -> None:
        """Write one member of obj, always, under json_name if given.

        Raises:
            MemberNotFoundError: If obj has no such member

        """
        cls = type(obj)
        metadata = self.registry.fields(cls).get(field_name)
        if metadata is None:
            raise MemberNotFoundError(field_name, cls, qualified_name(cls))
        static = metadata.static_type
        if element_type is not None:
            static = static.with_element(static_type(element_type))
        value = getattr(obj, field_name, None)
        self._write_member(cls, json_name or field_name, value, static)

    def write_object_start(
        self,
        actual_type: type | None = None,
        known_type: Any = None,
        *,
        name: str | None = None,
    ) -> None:
        """Open an object, tagged with actual_type unless known_type matches it."""
        self.writer.begin_object(name)
        if actual_type is not None and static_type(known_type).cls is not actual_type:
            self.write_type(actual_type)

    def write_object_end(self) -> None:
        self.writer.end()

    def write_array_start(self, *, name: str | None = None) -> None:
        self.writer.begin_array(name)

    def write_array_end(self) -> None:
        self.writer.end()

    def write_type(self, cls: type) -> None:
        """Write the type tag member for cls. Does nothing if tags are disabled."""
        type_name = self.config.type_name
        if type_name is None:
            return
        tag = self.registry.tag_for(cls)
        logger.debug("Writing type: %s", tag)
        self.writer.set(type_name, tag)

    # -- writing: dispatch -------------------------------------------------

    def _write(self, value: Any, static: StaticType) -> None:
        writer = self.writer
        if value is None:
            writer.value(None)
            return
        cls = type(value)
        shape = shape_of(cls)

        if shape is Shape.SCALAR:
            if static.absent and writer.at_root:
                self.write_object_start(cls, static)
                writer.set("value", value)
                writer.end()
            else:
                writer.value(value)
            return

        if isinstance(value, JsonSerializable):
            self.write_object_start(cls, static)
            value.write_json(self)
            self.write_object_end()
            return

        serializer = self._serializer_for(cls)
        if serializer is not None:
            serializer.write(self, value, static)
            return

        if isinstance(value, JsonValue):
            value.write(writer)
            return

        match shape:
            case Shape.ENUM:
                self._write_enum(value, static)
            case Shape.SEQUENCE:
                self._write_sequence(value, static)
            case Shape.ARRAY:
                if static.cls is not cls:
                    static = StaticType(cls)
                static = self._tuple_static(static)
                writer.begin_array()
                for index, item in enumerate(value):
                    self._write(item, static.item(index) or ABSENT)
                writer.end()
            case Shape.MAPPING:
                self.write_object_start(cls, static)
                element = static.element or ABSENT
                for key, item in value.items():
                    self._write_member(cls, self._key_text(key), item, element)
                writer.end()
            case _:
                self.write_object_start(cls, static)
                self.write_fields(value)
                writer.end()

    def _write_enum(self, member: enum.Enum, static: StaticType) -> None:
        text = self._enum_text(member)
        if self.config.type_name is None or static.cls is type(member):
            self.writer.value(text)
            return
        self.write_object_start(type(member), static)
        self.writer.set("value", text)
        self.writer.end()

    def _write_sequence(self, value: abc.Collection[Any], static: StaticType) -> None:
        cls = type(value)
        element = static.element or ABSENT
        wrap = cls is not list and cls is not static.cls and self.config.type_name is not None
        if wrap:
            self.write_object_start(cls, static)
            self.writer.name("items")
        self.writer.begin_array()
        for item in value:
            self._write(item, element)
        self.writer.end()
        if wrap:
            self.writer.end()

    def _write_member(self, owner: type, name: str, value: Any, static: StaticType) -> None:
        try:
            self.writer.name(name)
            self._write(value, static)
        except SerializationError as exc:
            exc.add_trace(f"{name} ({qualified_name(owner)})")
            raise
        except Exception as exc:
            error = SerializationError.wrap(exc)
            error.add_trace(f"{name} ({qualified_name(owner)})")
            raise error from exc

    def _key_text(self, key: Any) -> str:
        if isinstance(key, str) and not isinstance(key, enum.Enum):
            return key
        if isinstance(key, enum.Enum):
            return self._enum_text(key)
        if key is None or isinstance(key, bool | int | float):
            return OutputType.JSON.quote_value(key)
        if isinstance(key, type):
            return qualified_name(key)
        return str(key)

    def _enum_text(self, member: enum.Enum) -> str:
        return member.name if self.config.enum_names else str(member)

    # -- reading: entry points ---------------------------------------------

    def from_json(
        self,
        text: str | bytes | bytearray,
        cls: Any = None,
        element_type: Any = None,
    ) -> Any:
        """Parse text and read it as cls.

        Args:
            text: Text in any dialect the writer produces
            cls: Static type of the root; None reads it untyped
            element_type: Element type if the root is a container

        Returns:
            The rebuilt value. An object without a resolvable type is returned
            as its `JsonValue` node.

        Raises:
            JsonSyntaxError: If text is malformed
            SerializationError: If the tree does not fit cls

        """
        return self.from_tree(parse(text), cls, element_type)

    def from_stream(self, source: TextIO, cls: Any = None, element_type: Any = None) -> Any:
        """Read from a text stream. The stream is not closed."""
        return self.from_tree(parse(source), cls, element_type)

    def from_file(
        self,
        path: str | os.PathLike[str],
        cls: Any = None,
        element_type: Any = None,
    ) -> Any:
        """Read a UTF-8 file.

        Raises:
            SerializationError: "Error reading file: <path>", caused by the
                underlying failure

        """
        try:
            data = Path(path).read_bytes()
            return self.from_tree(parse(data), cls, element_type)
        except (OSError, SerializationError) as exc:
            msg = f"Error reading file: {path}"
            raise SerializationError(msg) from exc

    def from_tree(self, node: JsonValue, cls: Any = None, element_type: Any = None) -> Any:
        """Read an already parsed tree as cls."""
        return self.read_value(node, cls, element_type)

    # -- reading: primitives -----------------------------------------------

    def read_value(
        self,
        node: JsonValue | None,
        cls: Any = None,
        element_type: Any = None,
    ) -> Any:
        """Convert a node to a value of cls. A missing node reads as None."""
        if node is None:
            return None
        return self._read(node, _static(cls, element_type))

    def read_member(
        self,
        node: JsonValue,
        name: str,
        cls: Any = None,
        element_type: Any = None,
        default: Any = None,
    ) -> Any:
        """Read the named child of an object node, or return default if absent."""
        child = node.get(name)
        if child is None:
            return default
        return self._read(child, _static(cls, element_type))

    def read_fields(self, obj: Any, node: JsonValue) -> None:
        """Assign every member present in an object node to obj.

        Raises:
            MemberNotFoundError: For an input member obj's class lacks, unless
                `ignore_unknown_field` allows skipping it

        """
        cls = type(obj)
        type_name = self.config.type_name
        for name, child in node:
            metadata = self.registry.field(cls, name)
            if metadata is None and name == type_name:
                continue
            if metadata is None:
                if self.ignore_unknown_field(cls, name):
                    logger.debug("Ignoring unknown field: %s (%s)", name, qualified_name(cls))
                    continue
                raise MemberNotFoundError(name, cls, qualified_name(cls))
            if metadata.deprecated and self.config.ignore_deprecated:
                continue
            self._read_member(obj, metadata, child, metadata.static_type)

    def read_field(
        self,
        obj: Any,
        field_name: str,
        node: JsonValue,
        json_name: str | None = None,
        element_type: Any = None,
    ) -> None:
        """Assign one member of obj from the child json_name of node, if present.

        Raises:
            MemberNotFoundError: If obj has no such member

        """
        cls = type(obj)
        metadata = self.registry.fields(cls).get(field_name)
        if metadata is None:
            raise MemberNotFoundError(field_name, cls, qualified_name(cls))
        child = node.get(json_name or field_name)
        if child is None:
            return
        static = metadata.static_type
        if element_type is not None:
            static = static.with_element(static_type(element_type))
        self._read_member(obj, metadata, child, static)

    def new_instance[T](self, cls: type[T]) -> T:
        """Create an instance of cls without arguments.

        Tries `cls()`, then `cls.__new__(cls)` which skips `__init__`. An enum
        falls back to its first member.

        Raises:
            InstantiationError: If cls is abstract or cannot be created

        """
        name = qualified_name(cls)
        if inspect.isabstract(cls):
            msg = f"Class cannot be created (abstract): {name}"
            raise InstantiationError(msg, cls, "abstract")
        try:
            return cls()
        except Exception as exc:  # noqa: BLE001
            cause: Exception = exc
        try:
            return cls.__new__(cls)
        except Exception as exc:  # noqa: BLE001
            cause = exc
        if issubclass(cls, enum.Enum):
            members = list(cls)
            if members:
                return members[0]
        msg = f"Class cannot be created (missing no-arg constructor): {name}"
        raise InstantiationError(msg, cls, "missing-no-arg-constructor") from cause

    # -- reading: dispatch -------------------------------------------------

    def _read(self, node: JsonValue, static: StaticType) -> Any:
        cls = static.cls
        if cls is not None and issubclass(cls, JsonValue):
            return node
        if node.is_null():
            return None
        if node.is_object():
            return self._read_object(node, static)
        if cls is not None:
            serializer = self._serializer_for(cls)
            if serializer is not None:
                return serializer.read(self, node, cls)
        if node.is_array():
            return self._read_array(node, static)
        return self._read_scalar(node, static)

    def _read_object(self, node: JsonValue, static: StaticType) -> Any:
        type_name = self.config.type_name
        tag_node = node.get(type_name) if type_name is not None else None
        if tag_node is not None and tag_node.is_string():
            tag = tag_node.as_str()
            resolved = self.registry.class_for(tag)
            if resolved is None:
                msg = f"Unknown type tag: {tag}"
                raise UnknownTypeError(msg)
            node = node.without(type_name)
            static = dataclasses.replace(static, cls=resolved)

        cls = static.cls
        if cls is None:
            if self._default_serializer is not None:
                return self._default_serializer.read(self, node, None)
            return node

        serializer = self._serializer_for(cls)
        if serializer is not None:
            return serializer.read(self, node, cls)

        shape = shape_of(cls)
        if shape in (Shape.SCALAR, Shape.ENUM):
            inner = node.get("value")
            if inner is None:
                msg = f"Unable to convert value to required type: {node} ({qualified_name(cls)})"
                raise TypeMismatchError(msg)
            return self._read(inner, StaticType(cls))
        if shape in (Shape.SEQUENCE, Shape.ARRAY):
            items = node.get("items")
            if items is None or not items.is_array():
                msg = f"Class cannot be created (array type from an object): {qualified_name(cls)}"
                raise InstantiationError(msg, cls, "array-type-mismatch")
            return self._read_array(items, static)
        if shape is Shape.MAPPING:
            return self._read_mapping(node, static)

        obj = self.new_instance(cls)
        if isinstance(obj, JsonSerializable):
            obj.read_json(self, node)
        else:
            self.read_fields(obj, node)
        return obj

    def _read_mapping(self, node: JsonValue, static: StaticType) -> Any:
        cls = concrete_class(static.cls or dict)
        element = static.element or ABSENT
        entries: dict[Any, Any] = {}
        for name, child in node:
            try:
                key = self._read_key(name, static.key)
                entries[key] = self._read(child, element)
            except SerializationError as exc:
                exc.add_trace(f"{name} ({qualified_name(cls)})")
                raise
        if cls is dict:
            return entries
        if issubclass(cls, abc.MutableMapping):
            mapping = self.new_instance(cls)
            mapping.update(entries)
            return mapping
        return cls(entries)

    def _read_key(self, name: str, key: StaticType | None) -> Any:
        if key is None or key.absent or key.cls is str:
            return name
        return self._read(JsonValue.string(name), key)

    def _read_array(self, node: JsonValue, static: StaticType) -> Any:
        cls = concrete_class(static.cls) if static.cls is not None else list
        shape = shape_of(cls)
        if shape is Shape.SEQUENCE:
            element = static.element or ABSENT
            items = [self._read(child, element) for child in node]
            return items if cls is list else cls(items)
        if shape is Shape.ARRAY:
            static = self._tuple_static(static)
            items = [self._read(child, static.item(i) or ABSENT) for i, child in enumerate(node)]
            if hasattr(cls, "_make"):
                return cls._make(items)
            return cls(items)
        msg = f"Unable to convert value to required type: {node} ({qualified_name(cls)})"
        raise TypeMismatchError(msg)

    def _read_scalar(self, node: JsonValue, static: StaticType) -> Any:
        cls = static.cls
        if cls is None:
            return node.to_python()
        if issubclass(cls, enum.Enum):
            return self._read_enum(node, cls)
        if cls is str:
            return node.as_str()
        if issubclass(cls, bool):
            return node.as_bool()
        if issubclass(cls, int):
            return node.as_int() if cls is int else cls(node.as_int())
        if issubclass(cls, float):
            return node.as_float() if cls is float else cls(node.as_float())
        if issubclass(cls, str):
            return cls(node.as_str())
        value = node.to_python()
        if isinstance(value, cls):
            return value
        if issubclass(str, cls):
            return node.as_str()
        msg = f"Unable to convert value to required type: {node} ({qualified_name(cls)})"
        raise ConversionError(msg)

    def _read_enum(self, node: JsonValue, cls: type[enum.Enum]) -> enum.Enum:
        text = node.as_str()
        by_name = cls.__members__.get(text)
        by_display = next((m for m in cls if str(m) == text), None)
        first, second = (by_name, by_display) if self.config.enum_names else (by_display, by_name)
        if first is not None:
            return first
        if second is not None:
            return second
        try:
            return cls(node.to_python())
        except ValueError:
            pass
        msg = f"Unable to convert value to required type: {node} ({qualified_name(cls)})"
        raise ConversionError(msg)

    def _read_member(
        self,
        obj: Any,
        metadata: FieldMetadata,
        child: JsonValue,
        static: StaticType,
    ) -> None:
        cls = type(obj)
        try:
            _assign(obj, metadata.name, self._read(child, static))
        except SerializationError as exc:
            exc.add_trace(f"{metadata.name} ({qualified_name(cls)})")
            raise
        except Exception as exc:
            error = SerializationError.wrap(exc)
            error.add_trace(f"{metadata.name} ({qualified_name(cls)})")
            raise error from exc

    # -- shared ------------------------------------------------------------

    def _serializer_for(self, cls: type) -> JsonSerializer[Any] | None:
        serializer = self.registry.get_serializer(cls)
        if serializer is None and issubclass(cls, type):
            serializer = self.registry.get_serializer(type)
        return serializer

    def _tuple_static(self, static: StaticType) -> StaticType:
        """Fill in per-position types of a named tuple from its annotations."""
        cls = static.cls
        if cls is None or static.items is not None or static.element is not None:
            return static
        if not hasattr(cls, "_fields"):
            return static
        fields = self.registry.fields(cls)
        return StaticType(cls, items=tuple(f.declared for f in fields.values()))

    def pretty_print(self, obj: Any, *, fields_on_same_line: bool = False) -> str:
        """Render obj, JSON text or a `JsonValue` as indented text.

        A str is parsed as JSON text; anything else is written with `to_json`
        first.
        """
        if isinstance(obj, JsonValue):
            node = obj
        elif isinstance(obj, str):
            node = parse(obj)
        else:
            node = parse(self.to_json(obj))
        return pretty.pretty_print(
            node,
            self.config.output_type,
            fields_on_same_line=fields_on_same_line,
        )


def _static(known_type: Any, element_type: Any) -> StaticType:
    static = static_type(known_type)
    if element_type is None:
        return static
    return static.with_element(static_type(element_type))


def _assign(obj: Any, name: str, value: Any) -> None:
    try:
        setattr(obj, name, value)
    except dataclasses.FrozenInstanceError:
        object.__setattr__(obj, name, value)
