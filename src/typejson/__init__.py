"""typejson - Type-directed JSON serialization of Python object graphs."""

from typejson.config import JsonConfig
from typejson.engine import Json
from typejson.errors import (
    ConfigurationError,
    ConversionError,
    InstantiationError,
    JsonSyntaxError,
    MemberNotFoundError,
    ProtocolError,
    SerializationError,
    TypeMismatchError,
    UnknownTypeError,
)
from typejson.output import OutputType
from typejson.pretty import pretty_print
from typejson.reader import JsonReader, parse
from typejson.registry import Deprecated, FieldMetadata, Transient, TypeRegistry
from typejson.serialization import (
    default_engine,
    from_json,
    pretty_print_json,
    to_json,
)
from typejson.serializers import (
    FuncSerializer,
    JsonSerializable,
    JsonSerializer,
    ReadOnlySerializer,
    register_builtins,
)
from typejson.types import Shape, StaticType, qualified_name, shape_of, static_type
from typejson.value import JsonValue, ValueType
from typejson.writer import JsonWriter

__all__ = [
    # Errors
    "ConfigurationError",
    "ConversionError",
    # Hooks
    "Deprecated",
    "FieldMetadata",
    "FuncSerializer",
    "InstantiationError",
    # Engine
    "Json",
    "JsonConfig",
    # Text
    "JsonReader",
    "JsonSerializable",
    "JsonSerializer",
    "JsonSyntaxError",
    "JsonValue",
    "JsonWriter",
    "MemberNotFoundError",
    "OutputType",
    "ProtocolError",
    "ReadOnlySerializer",
    "SerializationError",
    # Types
    "Shape",
    "StaticType",
    "Transient",
    "TypeMismatchError",
    "TypeRegistry",
    "UnknownTypeError",
    "ValueType",
    # Convenience
    "default_engine",
    "from_json",
    "parse",
    "pretty_print",
    "pretty_print_json",
    "qualified_name",
    "register_builtins",
    "shape_of",
    "static_type",
    "to_json",
]
