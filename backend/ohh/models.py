"""Pydantic models for Open Hand History records."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ohh.cards import normalize_card_codes
from ohh.errors import PlayerNotFound


def _lookup_key(value: str) -> str:
    return re.sub(r"[\s_\-]", "", value).lower()


class Street(str, Enum):
    PREFLOP = "Preflop"
    FLOP = "Flop"
    TURN = "Turn"
    RIVER = "River"
    SHOWDOWN = "Showdown"

    @classmethod
    def _missing_(cls, value: object) -> Optional[Street]:
        if isinstance(value, str):
            key = _lookup_key(value)
            for member in cls:
                if _lookup_key(member.value) == key:
                    return member
        return None

    @property
    def order(self) -> int:
        return _STREET_ORDER.index(self)


_STREET_ORDER = list(Street)


class ActionKind(str, Enum):
    DEALT_CARDS = "Dealt Cards"
    POST_SB = "Post SB"
    POST_BB = "Post BB"
    POST_ANTE = "Post Ante"
    FOLD = "Fold"
    CHECK = "Check"
    BET = "Bet"
    RAISE = "Raise"
    CALL = "Call"
    SHOWS_CARDS = "Shows Cards"
    MUCKS_CARDS = "Mucks Cards"

    @classmethod
    def _missing_(cls, value: object) -> Optional[ActionKind]:
        if isinstance(value, str):
            key = _lookup_key(value)
            for member in cls:
                if key in (_lookup_key(member.value), _lookup_key(member.name)):
                    return member
            return _ACTION_ALIASES.get(key)
        return None

    @property
    def is_monetary(self) -> bool:
        return self in MONETARY_ACTIONS


_ACTION_ALIASES = {
    "postsmallblind": ActionKind.POST_SB,
    "postbigblind": ActionKind.POST_BB,
    "dealtcard": ActionKind.DEALT_CARDS,
    "showcards": ActionKind.SHOWS_CARDS,
    "muckcards": ActionKind.MUCKS_CARDS,
}

MONETARY_ACTIONS = frozenset(
    {
        ActionKind.POST_SB,
        ActionKind.POST_BB,
        ActionKind.POST_ANTE,
        ActionKind.BET,
        ActionKind.RAISE,
        ActionKind.CALL,
    }
)


class Position(str, Enum):
    BUTTON = "Button"
    SMALL_BLIND = "SB"
    BIG_BLIND = "BB"
    OTHER = "Other"


def _default_start_date() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _Record(BaseModel):
    """Base for wire models: frozen, snake_case out, snake or camel in."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Hand record ---


class Player(_Record):
    id: int
    seat: int
    starting_stack: int = Field(..., ge=0)
    name: str
    cards: Optional[tuple[str, ...]] = None

    @field_validator("cards")
    @classmethod
    def _normalize_cards(cls, v: Optional[tuple[str, ...]]) -> Optional[tuple[str, ...]]:
        if v is None:
            return v
        return tuple(normalize_card_codes(list(v)))


class Action(_Record):
    action_number: int
    player_id: int
    action: ActionKind
    amount: Optional[int] = Field(default=None, ge=0)
    is_allin: Optional[bool] = Field(default=None, alias="isAllIn")

    @field_validator("action", mode="before")
    @classmethod
    def _parse_action(cls, v: object) -> object:
        if isinstance(v, str):
            return ActionKind(v)
        return v

    @model_validator(mode="after")
    def _require_amount(self) -> Action:
        if self.action.is_monetary and self.amount is None:
            raise ValueError(f"{self.action.value} requires an amount")
        return self


class Round(_Record):
    id: int
    street: Street
    cards: Optional[tuple[str, ...]] = None
    actions: tuple[Action, ...] = ()

    @field_validator("street", mode="before")
    @classmethod
    def _parse_street(cls, v: object) -> object:
        if isinstance(v, str):
            return Street(v)
        return v

    @field_validator("cards")
    @classmethod
    def _normalize_cards(cls, v: Optional[tuple[str, ...]]) -> Optional[tuple[str, ...]]:
        if v is None:
            return v
        return tuple(normalize_card_codes(list(v)))


class PlayerWin(_Record):
    player_id: int
    # None until the builder settles it
    win_amount: Optional[int] = Field(default=None, ge=0)


class Pot(_Record):
    number: int
    amount: int = Field(..., ge=0)
    rake: Optional[int] = Field(default=None, ge=0)
    player_wins: tuple[PlayerWin, ...] = ()


class BetLimit(_Record):
    bet_cap: int = Field(default=0, ge=0)
    bet_type: str = "NL"


class HandRecord(_Record):
    """A single hand. Field order is the OHH wire order."""

    spec_version: str = "1.4.6"
    internal_version: str = "1.4.6"
    network_name: str = "CustomGame"
    site_name: str = "HomeGame"
    game_type: str = "Holdem"
    table_name: str = "Sample Table"
    table_size: int = Field(default=3, ge=2)
    game_number: str = "1"
    start_date_utc: str = Field(default_factory=_default_start_date)
    currency: str = "Chips"
    ante_amount: int = Field(default=0, ge=0)
    small_blind_amount: int = Field(default=1, ge=0)
    big_blind_amount: int = Field(default=2, ge=0)
    bet_limit: BetLimit = Field(default_factory=BetLimit)
    dealer_seat: int = 1
    hero_player_id: int = 0
    players: tuple[Player, ...] = ()
    rounds: tuple[Round, ...] = ()
    pots: tuple[Pot, ...] = ()

    @field_validator("game_number", mode="before")
    @classmethod
    def _coerce_game_number(cls, v: object) -> object:
        if isinstance(v, int):
            return str(v)
        return v

    @model_validator(mode="after")
    def _check_uniqueness(self) -> HandRecord:
        ids = [p.id for p in self.players]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate player id")
        seats = [p.seat for p in self.players]
        if len(seats) != len(set(seats)):
            raise ValueError("Duplicate seat")
        numbers = [a.action_number for r in self.rounds for a in r.actions]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Duplicate action number")
        return self

    def find_player(self, player_id: int) -> Player:
        for p in self.players:
            if p.id == player_id:
                return p
        raise PlayerNotFound(player_id)

    def players_by_seat(self) -> list[Player]:
        return sorted(self.players, key=lambda p: p.seat)

    def ordered_rounds(self) -> list[Round]:
        """Rounds in street order; rounds on the same street by id."""
        return sorted(self.rounds, key=lambda r: (r.street.order, r.id))


# --- Response models ---


class PlayerSettlement(BaseModel):
    player_id: int
    name: str
    seat: int
    position: Optional[Position] = None
    contribution: int
    uncalled: int
    won: int
    net: int


class SettlementResponse(BaseModel):
    game_number: str
    total_committed: int
    total_pot: int
    players: list[PlayerSettlement]


class StoreHandResponse(BaseModel):
    game_number: str


class PositionResponse(BaseModel):
    player_id: int
    position: Position

