"""Tests for the value tree model."""

from __future__ import annotations

import math

import pytest

from typejson.errors import ConversionError
from typejson.output import OutputType
from typejson.value import JsonValue, ValueType


class TestBuilders:
    """Test constructing trees."""

    def test_of_plain_data(self) -> None:
        """Test that plain Python data converts to a tree and back."""
        data = {"a": [1, "x", None, True], "b": {"c": 2.5}}
        node = JsonValue.of(data)
        assert node.is_object()
        assert node.to_python() == data
        assert node.to_json() == '{"a":[1,"x",null,true],"b":{"c":2.5}}'

    def test_number_from_text(self) -> None:
        """Test that number nodes keep their literal text."""
        node = JsonValue.number("1.50")
        assert node.as_str() == "1.50"
        assert node.as_float() == 1.5

    def test_number_rejects_non_literal(self) -> None:
        """Test that a non-numeric literal is rejected."""
        with pytest.raises(ConversionError):
            JsonValue.number("abc")

    def test_of_unsupported(self) -> None:
        """Test that arbitrary objects cannot be converted."""
        with pytest.raises(ConversionError, match="object"):
            JsonValue.of(object())


class TestKinds:
    """Test kind predicates."""

    def test_predicates(self) -> None:
        """Test each predicate against its node kind."""
        assert JsonValue.null().is_null()
        assert JsonValue.boolean(True).is_boolean()  # noqa: FBT003
        assert JsonValue.number(1).is_number()
        assert JsonValue.string("x").is_string()
        assert JsonValue.array().is_array()
        assert JsonValue.object().is_object()

    def test_is_value(self) -> None:
        """Test that scalars and null are values but containers are not."""
        assert JsonValue.null().is_value()
        assert JsonValue.string("x").is_value()
        assert not JsonValue.array().is_value()
        assert not JsonValue.object().is_value()


class TestChildren:
    """Test child access on objects and arrays."""

    def test_object_access(self) -> None:
        """Test lookup, membership and iteration of an object."""
        node = JsonValue.of({"a": 1, "b": 2})
        assert node["a"].as_int() == 1
        assert node.get("missing") is None
        assert "b" in node
        assert node.names() == ["a", "b"]
        assert [name for name, _ in node] == ["a", "b"]
        with pytest.raises(KeyError):
            node["missing"]

    def test_array_access(self) -> None:
        """Test index access and iteration of an array."""
        node = JsonValue.of([10, 20])
        assert len(node) == 2
        assert node[1].as_int() == 20
        assert [child.as_int() for child in node] == [10, 20]

    def test_duplicate_names_kept(self) -> None:
        """Test that get returns the first of duplicate names."""
        node = JsonValue.object([("a", JsonValue.number(1)), ("a", JsonValue.number(2))])
        assert len(node) == 2
        assert node["a"].as_int() == 1

    def test_remove(self) -> None:
        """Test that remove detaches and returns the first match."""
        node = JsonValue.of({"class": "x", "a": 1})
        removed = node.remove("class")
        assert removed is not None
        assert removed.as_str() == "x"
        assert node.names() == ["a"]
        assert node.remove("class") is None

    def test_without_does_not_mutate(self) -> None:
        """Test that without returns a copy and keeps the original intact."""
        node = JsonValue.of({"class": "x", "a": 1})
        copy = node.without("class")
        assert copy.names() == ["a"]
        assert node.names() == ["class", "a"]

    def test_add_and_append_check_kind(self) -> None:
        """Test that named children only go to objects and unnamed to arrays."""
        with pytest.raises(ConversionError):
            JsonValue.array().add("a", JsonValue.null())
        with pytest.raises(ConversionError):
            JsonValue.object().append(JsonValue.null())


class TestCoercion:
    """Test scalar coercions."""

    def test_as_int_truncates(self) -> None:
        """Test that fractional literals truncate toward zero."""
        assert JsonValue.number("3.9").as_int() == 3
        assert JsonValue.number("-3.9").as_int() == -3

    def test_as_int_from_string(self) -> None:
        """Test that numeric strings parse as ints."""
        assert JsonValue.string("42").as_int() == 42

    def test_as_int_failure(self) -> None:
        """Test that non-numeric text fails with ConversionError."""
        with pytest.raises(ConversionError, match="abc"):
            JsonValue.string("abc").as_int()

    def test_number_grammar(self) -> None:
        """Test that text Python would accept but JSON would not is refused."""
        for text in ("1_000", "\u0661", "+5", " 0x10", "inf"):
            with pytest.raises(ConversionError):
                JsonValue.string(text).as_int()
        with pytest.raises(ConversionError):
            JsonValue.string("1_0.5").as_float()

    def test_as_float_special(self) -> None:
        """Test that word literals convert to non-finite floats."""
        assert math.isnan(JsonValue.number("NaN").as_float())
        assert JsonValue.number("-Infinity").as_float() == -math.inf

    @pytest.mark.parametrize(("text", "expected"), [("true", True), ("TRUE", True), ("1", True), ("false", False), ("0", False)])
    def test_as_bool(self, text: str, expected: bool) -> None:  # noqa: FBT001
        """Test accepted boolean spellings."""
        assert JsonValue.string(text).as_bool() is expected

    def test_as_bool_failure(self) -> None:
        """Test that other text is not a boolean."""
        with pytest.raises(ConversionError):
            JsonValue.string("yes").as_bool()

    def test_containers_do_not_coerce(self) -> None:
        """Test that objects, arrays and null have no scalar form."""
        with pytest.raises(ConversionError):
            JsonValue.object().as_str()
        with pytest.raises(ConversionError):
            JsonValue.array().as_int()
        with pytest.raises(ConversionError):
            JsonValue.null().as_float()

    def test_to_python_numbers(self) -> None:
        """Test that integral literals become int and others float."""
        assert JsonValue.number("5").to_python() == 5
        assert isinstance(JsonValue.number("5").to_python(), int)
        assert isinstance(JsonValue.number("5.0").to_python(), float)


class TestRendering:
    """Test equality and text output."""

    def test_structural_equality(self) -> None:
        """Test that trees with the same content are equal."""
        assert JsonValue.of({"a": [1]}) == JsonValue.of({"a": [1]})
        assert JsonValue.of({"a": [1]}) != JsonValue.of({"a": [2]})

    def test_to_json_dialect(self) -> None:
        """Test rendering in the minimal dialect."""
        node = JsonValue.of({"name": "Ada", "n": "5"})
        assert node.to_json(OutputType.MINIMAL) == '{name:Ada,n:"5"}'

    def test_type_attribute(self) -> None:
        """Test that the node kind is exposed."""
        assert JsonValue.of([]).type is ValueType.ARRAY
