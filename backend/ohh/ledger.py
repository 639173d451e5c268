"""Contribution ledger: replays a hand's actions and totals what each
player put into the pot.

Bets and raises carry the player's new total for the street ("raise to
60"), calls carry the increment ("call 40"). Mixing the two up double
counts chips, so the replay tracks each player's street contribution and
converts bet/raise targets into increments against it.
"""

from __future__ import annotations

import logging
from typing import Optional

from ohh.errors import PlayerNotFound
from ohh.models import Action, ActionKind, HandRecord, Position, Street
from ohh.positions import player_in_position

logger = logging.getLogger(__name__)


class Ledger:
    """Per-player contribution totals for one hand."""

    def __init__(self, player_ids: list[int]) -> None:
        self.totals: dict[int, int] = {pid: 0 for pid in player_ids}
        self._by_street: dict[Street, dict[int, int]] = {}

    def add(self, player_id: int, amount: int, street: Street) -> None:
        self.totals[player_id] += amount
        street_totals = self._by_street.setdefault(street, {})
        street_totals[player_id] = street_totals.get(player_id, 0) + amount

    def contribution(self, player_id: int) -> int:
        if player_id not in self.totals:
            raise PlayerNotFound(player_id)
        return self.totals[player_id]

    def street_totals(self, street: Street) -> dict[int, int]:
        return dict(self._by_street.get(street, {}))

    @property
    def total_committed(self) -> int:
        return sum(self.totals.values())

    def others_combined(self, player_id: int) -> int:
        return self.total_committed - self.contribution(player_id)

    def highest_other(self, player_id: int) -> int:
        """Largest single contribution by anyone other than ``player_id``."""
        self.contribution(player_id)
        return max(
            (amt for pid, amt in self.totals.items() if pid != player_id),
            default=0,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "totals": dict(self.totals),
            "by_street": {
                street.value: dict(amounts)
                for street, amounts in self._by_street.items()
            },
            "total_committed": self.total_committed,
        }


class _StreetState:
    """Betting state that resets at the start of every street."""

    def __init__(self) -> None:
        self.current_bet_level = 0
        self.put_in: dict[int, int] = {}

    def contributed(self, player_id: int) -> int:
        return self.put_in.get(player_id, 0)

    def record(self, player_id: int, amount: int) -> None:
        self.put_in[player_id] = self.contributed(player_id) + amount


def _has_blind_posts(hand: HandRecord) -> bool:
    return any(
        a.action in (ActionKind.POST_SB, ActionKind.POST_BB)
        for r in hand.rounds
        for a in r.actions
    )


def _seed_blinds(hand: HandRecord, ledger: Ledger, state: _StreetState) -> None:
    sb = player_in_position(hand, Position.SMALL_BLIND)
    bb = player_in_position(hand, Position.BIG_BLIND)
    if sb is not None:
        ledger.add(sb, hand.small_blind_amount, Street.PREFLOP)
        state.record(sb, hand.small_blind_amount)
    if bb is not None:
        ledger.add(bb, hand.big_blind_amount, Street.PREFLOP)
        state.record(bb, hand.big_blind_amount)
        state.current_bet_level = hand.big_blind_amount


def _apply(action: Action, street: Street, ledger: Ledger, state: _StreetState) -> None:
    pid = action.player_id
    kind = action.action
    amount = action.amount or 0

    if kind in (ActionKind.POST_SB, ActionKind.POST_BB):
        ledger.add(pid, amount, street)
        state.record(pid, amount)
        if kind == ActionKind.POST_BB:
            state.current_bet_level = amount
    elif kind == ActionKind.POST_ANTE:
        # Dead money: not part of the street's bet level
        ledger.add(pid, amount, street)
    elif kind in (ActionKind.BET, ActionKind.RAISE):
        increment = amount - state.contributed(pid)
        if increment < 0:
            raise ValueError(
                f"Action {action.action_number}: {kind.value} to {amount} is below "
                f"the {state.contributed(pid)} already put in on the {street.value}"
            )
        ledger.add(pid, increment, street)
        state.record(pid, increment)
        state.current_bet_level = amount
    elif kind == ActionKind.CALL:
        ledger.add(pid, amount, street)
        state.record(pid, amount)
    elif kind in (
        ActionKind.FOLD,
        ActionKind.CHECK,
        ActionKind.DEALT_CARDS,
        ActionKind.SHOWS_CARDS,
        ActionKind.MUCKS_CARDS,
    ):
        pass
    else:
        raise ValueError(f"Unhandled action: {kind}")


def build_ledger(
    hand: HandRecord,
    *,
    implicit_blinds: bool = False,
    until: Optional[int] = None,
) -> Ledger:
    """Replay ``hand`` in (street, action number) order.

    ``implicit_blinds`` seeds the preflop blinds from the table positions
    when the hand carries no blind posts. ``until`` stops after the given
    action number.
    """
    ledger = Ledger([p.id for p in hand.players])
    seed = implicit_blinds and not _has_blind_posts(hand)

    for rnd in hand.ordered_rounds():
        state = _StreetState()
        if seed and rnd.street == Street.PREFLOP:
            _seed_blinds(hand, ledger, state)
            seed = False
        for action in sorted(rnd.actions, key=lambda a: a.action_number):
            if until is not None and action.action_number > until:
                break
            if action.player_id not in ledger.totals:
                raise PlayerNotFound(action.player_id)
            _apply(action, rnd.street, ledger, state)

    logger.debug(
        "Ledger for hand %s: %s", hand.game_number, ledger.totals
    )
    return ledger
