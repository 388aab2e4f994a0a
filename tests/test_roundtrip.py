"""Round-trip tests: values read back from written text equal the originals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

import pytest

from typejson import Json, OutputType, parse


class Suit(Enum):
    HEARTS = "h"
    SPADES = "s"


@dataclass
class Card:
    rank: int = 0
    suit: Suit = Suit.HEARTS


@dataclass
class Hand:
    owner: str = ""
    cards: list[Card] = field(default_factory=list)
    scores: dict[str, list[int]] = field(default_factory=dict)
    seats: dict[int, str] = field(default_factory=dict)
    position: tuple[int, str] = (0, "")
    tags: set[str] = field(default_factory=set)
    flags: frozenset[int] = frozenset()
    best: Card | None = None
    dealt: datetime | None = None
    stake: Decimal = Decimal(0)
    ratio: float = 0.0


@dataclass
class Figure:
    name: str = ""


@dataclass
class Circle(Figure):
    radius: float = 0.0


@dataclass
class Square(Figure):
    side: float = 0.0


@dataclass
class Drawing:
    figures: list[Figure] = field(default_factory=list)
    background: Figure | None = None


def _hand() -> Hand:
    return Hand(
        owner="Ada Lovelace",
        cards=[Card(10, Suit.SPADES), Card(2)],
        scores={"round one": [1, 2], "round two": []},
        seats={1: "north", 3: "south"},
        position=(4, "east"),
        tags={"dealer"},
        flags=frozenset({7}),
        best=Card(12, Suit.SPADES),
        dealt=datetime(2024, 3, 1, 18, 30),
        stake=Decimal("12.50"),
        ratio=0.25,
    )


def _drawing() -> Drawing:
    return Drawing(
        figures=[Circle("sun", 1.5), Square("box", 2.0), Figure("dot")],
        background=Square("wall", 10.0),
    )


class TestRoundTrip:
    """Test reading back what was written."""

    @pytest.mark.parametrize("use_prototypes", [True, False])
    def test_nested_graph(self, use_prototypes: bool) -> None:  # noqa: FBT001
        """Test a graph of containers, enums and standard value types."""
        json = Json(use_prototypes=use_prototypes)
        hand = _hand()
        assert json.from_json(json.to_json(hand), Hand) == hand

    @pytest.mark.parametrize("use_prototypes", [True, False])
    def test_defaults(self, use_prototypes: bool) -> None:  # noqa: FBT001
        """Test a graph holding only default values."""
        json = Json(use_prototypes=use_prototypes)
        assert json.from_json(json.to_json(Hand()), Hand) == Hand()

    def test_polymorphic(self) -> None:
        """Test that subclasses survive through tags."""
        json = Json()
        drawing = _drawing()
        text = json.to_json(drawing)
        assert json.from_json(text, Drawing) == drawing

    def test_polymorphic_with_aliases(self) -> None:
        """Test that aliases replace qualified names in both directions."""
        json = Json()
        json.add_class_tag("circle", Circle)
        json.add_class_tag("square", Square)
        drawing = _drawing()
        text = json.to_json(drawing)
        assert '"class":"circle"' in text
        assert __name__ not in text
        assert json.from_json(text, Drawing) == drawing

    def test_untyped_root(self) -> None:
        """Test that a tagged root reads back without a static type."""
        json = Json()
        hand = _hand()
        assert json.from_json(json.to_json(hand, object)) == hand

    def test_root_list(self) -> None:
        """Test a root list with an element type."""
        json = Json()
        cards = [Card(1), Card(2, Suit.SPADES)]
        assert json.from_json(json.to_json(cards, list, Card), list, Card) == cards


class TestDialects:
    """Test round trips through the relaxed dialects."""

    @pytest.mark.parametrize("output_type", [OutputType.JAVASCRIPT, OutputType.MINIMAL])
    def test_round_trip(self, output_type: OutputType) -> None:
        """Test that relaxed output reads back."""
        json = Json(output_type=output_type)
        hand = _hand()
        assert json.from_json(json.to_json(hand), Hand) == hand

    def test_minimal_idempotent(self) -> None:
        """Test that re-emitting parsed minimal text reproduces it."""
        json = Json(output_type=OutputType.MINIMAL)
        text = json.to_json(_drawing())
        assert parse(text).to_json(OutputType.MINIMAL) == text

    def test_minimal_ambiguous_strings(self) -> None:
        """Test that strings that look like other tokens survive."""
        json = Json(output_type=OutputType.MINIMAL)
        values = ["true", "null", "12", "a,b", "trailing ", " leading", "", "x:y", "//c"]
        text = json.to_json(values, list[str])
        assert json.from_json(text, list[str]) == values
