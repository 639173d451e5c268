"""Card codes as they appear in hand histories ("Ah", "Tc", "2d")."""

from __future__ import annotations

from enum import IntEnum, Enum


class Suit(str, Enum):
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"


class Rank(IntEnum):
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


RANK_SYMBOLS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

_RANK_BY_SYMBOL = {v: k for k, v in RANK_SYMBOLS.items()}

# Placeholder for a card that was dealt but never shown.
HIDDEN_CARD = "X"


class Card:
    __slots__ = ("rank", "suit")

    def __init__(self, rank: Rank, suit: Suit) -> None:
        self.rank = rank
        self.suit = suit

    def __repr__(self) -> str:
        return f"{RANK_SYMBOLS[self.rank]}{self.suit.value}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank == other.rank and self.suit == other.suit

    def __hash__(self) -> int:
        return hash((self.rank, self.suit))

    @property
    def code(self) -> str:
        return repr(self)

    @classmethod
    def from_str(cls, s: str) -> Card:
        """Parse 'Ah', 'Ts', '2c' etc. Accepts '10h' for tens."""
        if len(s) == 3 and s[:2] == "10":
            s = "T" + s[2]
        if len(s) != 2:
            raise ValueError(f"Invalid card code: {s!r}")
        rank_char = s[0].upper()
        suit_char = s[1].lower()
        if rank_char not in _RANK_BY_SYMBOL:
            raise ValueError(f"Invalid card rank in {s!r}")
        try:
            suit = Suit(suit_char)
        except ValueError:
            raise ValueError(f"Invalid card suit in {s!r}") from None
        return cls(_RANK_BY_SYMBOL[rank_char], suit)


def normalize_card_code(code: str) -> str:
    """Return the canonical form of a card code ('ah' -> 'Ah').

    Hidden cards ('X', 'x') are kept as the placeholder.
    """
    if code.upper() == HIDDEN_CARD:
        return HIDDEN_CARD
    return Card.from_str(code).code


def normalize_card_codes(codes: list[str]) -> list[str]:
    normalized = [normalize_card_code(c) for c in codes]
    shown = [c for c in normalized if c != HIDDEN_CARD]
    if len(shown) != len(set(shown)):
        raise ValueError(f"Duplicate card in {codes!r}")
    return normalized
