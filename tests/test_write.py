"""Tests for the write side of the Json engine."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

import pytest

from typejson import (
    Deprecated,
    FuncSerializer,
    Json,
    JsonSerializable,
    JsonValue,
    OutputType,
    ProtocolError,
    SerializationError,
    Transient,
    qualified_name,
)

# =============================================================================
# Model classes
# =============================================================================


class Person:
    name: str = ""
    age: int = 0


class Animal:
    name: str = ""


class Dog(Animal):
    good: bool = True


class Zoo:
    animals: list[Animal]

    def __init__(self) -> None:
        self.animals = []


class Color(Enum):
    RED = 1
    GREEN = 2


class Palette:
    primary: Color = Color.RED
    anything: Any = None


class Account:
    user: str = ""
    password: Annotated[str, Transient] = ""
    legacy: Annotated[int, Deprecated] = 0


class Vector(JsonSerializable):
    def __init__(self) -> None:
        self.x = 0
        self.y = 0

    def write_json(self, json: Json) -> None:
        json.write_value([self.x, self.y], list[int], name="xy")

    def read_json(self, json: Json, node: JsonValue) -> None:
        self.x, self.y = json.read_member(node, "xy", list[int])


class Boom:
    pass


def _explode(value: Boom) -> str:
    msg = "boom"
    raise ValueError(msg)


class Inner:
    boom: Boom | None = None


class Outer:
    inner: Inner | None = None


@dataclass
class Point:
    x: int = 0
    y: int = 0


def _person(name: str = "", age: int = 0) -> Person:
    person = Person()
    person.name = name
    person.age = age
    return person


def _animal(cls: type[Animal], name: str) -> Animal:
    animal = cls()
    animal.name = name
    return animal


# =============================================================================
# Tests
# =============================================================================


class TestPrototypeElision:
    """Test that members equal to their defaults are skipped."""

    def test_fresh_instance_is_empty(self) -> None:
        """Test that a default instance writes as an empty object."""
        assert Json().to_json(Person()) == "{}"

    def test_changed_member_only(self) -> None:
        """Test that only changed members are written."""
        assert Json().to_json(_person(age=5)) == '{"age":5}'

    def test_disabled(self) -> None:
        """Test that every member is written without prototypes."""
        json = Json(use_prototypes=False)
        assert json.to_json(_person(age=5)) == '{"name":"","age":5}'

    def test_dataclass(self) -> None:
        """Test elision with dataclass defaults."""
        assert Json().to_json(Point(y=3)) == '{"y":3}'

    def test_different_type_not_elided(self) -> None:
        """Test that a value equal to the default but of another type is written."""
        assert Json().to_json(Point(x=0.0)) == '{"x":0.0}'  # type: ignore[arg-type]


class TestTypeTags:
    """Test when type tags are written."""

    def test_untyped_root_object(self) -> None:
        """Test that an object without static type gets a tag."""
        text = Json().to_json(_person(age=5), object)
        assert text == f'{{"class":"{qualified_name(Person)}","age":5}}'

    def test_alias(self) -> None:
        """Test that an alias replaces the qualified name."""
        json = Json()
        json.add_class_tag("person", Person)
        assert json.to_json(_person(age=5), object) == '{"class":"person","age":5}'

    def test_custom_type_name(self) -> None:
        """Test a different tag member name."""
        json = Json(type_name="@type")
        json.add_class_tag("person", Person)
        assert json.to_json(Person(), object) == '{"@type":"person"}'

    def test_tags_disabled(self) -> None:
        """Test that no tag is written when tagging is disabled."""
        assert Json(type_name=None).to_json(_person(age=5), object) == '{"age":5}'

    def test_polymorphic_elements(self) -> None:
        """Test that only elements whose type differs from the element type are tagged."""
        zoo = Zoo()
        zoo.animals = [_animal(Dog, "rex"), _animal(Animal, "cat")]
        expected = f'{{"animals":[{{"class":"{qualified_name(Dog)}","name":"rex"}},{{"name":"cat"}}]}}'
        assert Json().to_json(zoo) == expected

    def test_element_type_override(self) -> None:
        """Test that a matching element override removes the tags."""
        json = Json()
        json.set_element_type(Zoo, "animals", Dog)
        zoo = Zoo()
        zoo.animals = [_animal(Dog, "rex"), _animal(Dog, "fido")]
        assert json.to_json(zoo) == '{"animals":[{"name":"rex"},{"name":"fido"}]}'

    def test_root_element_type(self) -> None:
        """Test passing the element type of a root list."""
        animals = [_animal(Dog, "rex")]
        assert Json().to_json(animals, list, Dog) == '[{"name":"rex"}]'


class TestScalars:
    """Test scalar values."""

    def test_root_scalar(self) -> None:
        """Test that a root scalar with its own type is bare."""
        assert Json().to_json(42) == "42"
        assert Json().to_json("a\"b") == '"a\\"b"'
        assert Json().to_json(None) == "null"

    def test_untyped_root_scalar_wrapped(self) -> None:
        """Test that a root scalar without static type is wrapped."""
        assert Json().to_json(42, object) == '{"class":"int","value":42}'
        assert Json(type_name=None).to_json(42, object) == '{"value":42}'

    def test_nested_scalar_bare(self) -> None:
        """Test that nested scalars are never wrapped."""
        assert Json().to_json([1, "x", 2.5, True], list) == '[1,"x",2.5,true]'


class TestContainers:
    """Test sequences, arrays and mappings."""

    def test_mapping(self) -> None:
        """Test that keys are converted to names."""
        assert Json().to_json({"a": 1, 2: "b", True: None}) == '{"a":1,"2":"b","true":null}'

    def test_untyped_mapping_tagged(self) -> None:
        """Test that a mapping without static type is tagged."""
        assert Json().to_json({"a": 1}, object) == '{"class":"dict","a":1}'

    def test_enum_keys(self) -> None:
        """Test that enum keys use their names."""
        assert Json().to_json({Color.RED: 1}) == '{"RED":1}'

    def test_tuple(self) -> None:
        """Test that tuples are bare arrays."""
        assert Json().to_json((1, "a")) == '[1,"a"]'

    def test_set_with_matching_type(self) -> None:
        """Test that a set is bare when its type is known."""
        assert Json().to_json({3}) == "[3]"

    def test_untyped_sequence_wrapped(self) -> None:
        """Test that a non-list sequence without matching type is wrapped."""
        assert Json().to_json([{1}], list) == '[{"class":"set","items":[1]}]'
        assert Json().to_json([deque([1])], list) == '[{"class":"collections.deque","items":[1]}]'

    def test_untyped_sequence_bare_without_tags(self) -> None:
        """Test that sequences are never wrapped when tagging is disabled."""
        assert Json(type_name=None).to_json([{1}], list) == "[[1]]"

    def test_value_tree_written_verbatim(self) -> None:
        """Test that a JsonValue member is copied as is."""
        assert Json().to_json([JsonValue.of({"k": [1]})], list) == '[{"k":[1]}]'


class TestEnums:
    """Test enum members."""

    def test_known_type(self) -> None:
        """Test that an enum with matching static type is its bare name."""
        assert Json().to_json(Color.RED) == '"RED"'

    def test_untyped(self) -> None:
        """Test that an enum without static type is wrapped."""
        palette = Palette()
        palette.anything = Color.GREEN
        expected = f'{{"anything":{{"class":"{qualified_name(Color)}","value":"GREEN"}}}}'
        assert Json().to_json(palette) == expected

    def test_display_strings(self) -> None:
        """Test writing str(member) instead of the name."""
        assert Json(enum_names=False).to_json(Color.GREEN) == '"Color.GREEN"'


class TestMemberPolicies:
    """Test transient and deprecated members."""

    def test_transient_never_written(self) -> None:
        """Test that transient members are skipped."""
        account = Account()
        account.user = "ada"
        account.password = "secret"
        assert Json().to_json(account) == '{"user":"ada"}'

    def test_deprecated(self) -> None:
        """Test that deprecated members are skipped on request."""
        account = Account()
        account.legacy = 7
        assert Json().to_json(account) == '{"legacy":7}'
        assert Json(ignore_deprecated=True).to_json(account) == "{}"

    def test_sort_fields(self) -> None:
        """Test alphabetical member order."""
        json = Json(sort_fields=True, use_prototypes=False)
        assert json.to_json(_person("Ada", 36)) == '{"age":36,"name":"Ada"}'


class TestDialects:
    """Test engine output in each dialect."""

    def test_minimal(self) -> None:
        """Test that minimal output leaves plain names and values bare."""
        json = Json(output_type=OutputType.MINIMAL)
        assert json.to_json(_person("Ada Lovelace", 36)) == "{name:Ada Lovelace,age:36}"

    def test_javascript(self) -> None:
        """Test that javascript output leaves identifier names bare."""
        json = Json(output_type=OutputType.JAVASCRIPT)
        assert json.to_json(_person("Ada", 36)) == '{name:"Ada",age:36}'


class TestHooks:
    """Test self-describing types and serializers."""

    def test_serializable(self) -> None:
        """Test that a JsonSerializable writes its own members."""
        vector = Vector()
        vector.x, vector.y = 1, 2
        assert Json().to_json(vector) == '{"xy":[1,2]}'
        assert Json().to_json(vector, object) == f'{{"class":"{qualified_name(Vector)}","xy":[1,2]}}'

    def test_func_serializer(self) -> None:
        """Test a serializer built from encode and decode functions."""
        json = Json()
        json.set_serializer(Point, FuncSerializer(Point, lambda p: [p.x, p.y], lambda v: Point(*v), list[int]))
        assert json.to_json(Point(1, 2)) == "[1,2]"
        assert json.to_json(Point(1, 2), object) == f'{{"class":"{qualified_name(Point)}","value":[1,2]}}'

    def test_write_field(self) -> None:
        """Test writing one member under another name from a hook."""
        json = Json()
        person = _person("Ada", 36)

        class Card(JsonSerializable):
            def write_json(self, json: Json) -> None:
                json.write_field(person, "name", "label")

            def read_json(self, json: Json, node: JsonValue) -> None:
                pass

        assert json.to_json(Card()) == '{"label":"Ada"}'

    def test_hook_grammar_violation(self) -> None:
        """Test that a hook writing a value without a name fails."""

        class Broken(JsonSerializable):
            def write_json(self, json: Json) -> None:
                json.writer.value(1)

            def read_json(self, json: Json, node: JsonValue) -> None:
                pass

        with pytest.raises(ProtocolError):
            Json().to_json(Broken())


class TestErrors:
    """Test error traces on the write side."""

    def test_trace_accumulates(self) -> None:
        """Test that nested member failures report the member path."""
        json = Json()
        json.set_serializer(Boom, FuncSerializer(Boom, _explode, Boom, str))
        outer = Outer()
        outer.inner = Inner()
        outer.inner.boom = Boom()
        with pytest.raises(SerializationError) as info:
            json.to_json(outer)
        error = info.value
        assert error.trace == [
            f"boom ({qualified_name(Inner)})",
            f"inner ({qualified_name(Outer)})",
        ]
        assert error.caused_by(ValueError)
        assert str(error).startswith("boom\nSerialization trace:\n")

    def test_no_write_in_progress(self) -> None:
        """Test that primitives need an active write."""
        with pytest.raises(ProtocolError):
            Json().write_value(1)
