"""Playing cards for the card mini-games."""

import random
from dataclasses import dataclass
from enum import Enum


class Rank(Enum):
    """Card rank with numeric value and symbol. Aces are high."""

    TWO = (2, "2")
    THREE = (3, "3")
    FOUR = (4, "4")
    FIVE = (5, "5")
    SIX = (6, "6")
    SEVEN = (7, "7")
    EIGHT = (8, "8")
    NINE = (9, "9")
    TEN = (10, "T")
    JACK = (11, "J")
    QUEEN = (12, "Q")
    KING = (13, "K")
    ACE = (14, "A")

    @property
    def points(self) -> int:
        """Numeric rank value (2-14)."""
        return self._value_[0]

    @property
    def symbol(self) -> str:
        return self._value_[1]


class Suit(Enum):
    SPADES = "S"
    CLUBS = "C"
    DIAMONDS = "D"
    HEARTS = "H"


@dataclass(frozen=True)
class Card:
    """Immutable playing card, written rank + suit, e.g. "AS" or "TH"."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank.symbol}{self.suit.value}"

    def __repr__(self) -> str:
        return f"Card({self})"

    @property
    def value(self) -> int:
        return self.rank.points

    def to_dict(self) -> dict[str, str]:
        return {"value": self.rank.symbol, "suit": self.suit.value, "key": str(self)}


def new_deck() -> list[Card]:
    """A fresh, ordered 52-card deck."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def draw_two(rng: random.Random) -> tuple[Card, Card]:
    """Shuffle a fresh deck and take the top two cards."""
    deck = new_deck()
    rng.shuffle(deck)
    return deck[0], deck[1]
