"""Append-only builder for a hand record.

The builder owns the in-progress hand. Every append replaces the affected
immutable value; ``snapshot()`` hands out a frozen ``HandRecord`` that the
ledger and settlement code read without ever seeing later appends.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

from ohh import serialization
from ohh.errors import PlayerNotFound, RoundNotFound
from ohh.models import Action, HandRecord, Player, PlayerWin, Pot, Round
from ohh.settlement import estimate_win, split_pot, uncalled_excess

logger = logging.getLogger(__name__)


class HandHistoryBuilder:
    """Records one hand as it is played."""

    def __init__(self, **config: Any) -> None:
        for key in ("players", "rounds", "pots"):
            if key in config:
                raise TypeError(f"{key} must be added through the builder")
        self._base = HandRecord.model_validate(config)
        self._players: list[Player] = []
        self._rounds: list[Round] = []
        self._pots: list[Pot] = []
        self._last_action_number: int | None = None

    # --- Appends ---

    def add_player(self, player: Union[Player, dict[str, Any]]) -> Player:
        if not isinstance(player, Player):
            player = Player.model_validate(player)
        for p in self._players:
            if p.id == player.id:
                raise ValueError(f"Duplicate player id: {player.id}")
            if p.seat == player.seat:
                raise ValueError(f"Seat {player.seat} is already taken")
        self._players.append(player)
        return player

    def add_round(self, rnd: Union[Round, dict[str, Any]]) -> Round:
        if not isinstance(rnd, Round):
            rnd = Round.model_validate(rnd)
        last = self._last_action_number
        for action in rnd.actions:
            self._check_action(action, last)
            last = action.action_number
        self._rounds.append(rnd)
        self._last_action_number = last
        return rnd

    def add_action_to_round(
        self, round_id: int, action: Union[Action, dict[str, Any]]
    ) -> None:
        """Append ``action`` to round ``round_id``.

        Unknown rounds are ignored (logged at DEBUG), not an error.
        """
        if not isinstance(action, Action):
            action = Action.model_validate(action)
        idx = self._round_index(round_id)
        if idx is None:
            logger.debug(
                "Ignoring action %d: round %d not found",
                action.action_number,
                round_id,
            )
            return
        self._check_action(action, self._last_action_number)
        rnd = self._rounds[idx]
        self._rounds[idx] = rnd.model_copy(
            update={"actions": rnd.actions + (action,)}
        )
        self._last_action_number = action.action_number

    def add_pot(self, pot: Union[Pot, dict[str, Any]]) -> Pot:
        """Record a pot, filling in any unset win amounts.

        A lone winner collects the settlement estimate plus any uncalled
        excess handed back, less what earlier pots already paid out and
        never more than the pot holds. Several winners split what the
        explicit shares leave of the pot.
        """
        if not isinstance(pot, Pot):
            pot = Pot.model_validate(pot)
        pot = self._settle_pot(pot)
        self._pots.append(pot)
        return pot

    # --- Queries ---

    def get_round(self, round_id: int) -> Round:
        idx = self._round_index(round_id)
        if idx is None:
            raise RoundNotFound(round_id)
        return self._rounds[idx]

    def snapshot(self) -> HandRecord:
        return self._base.model_copy(
            update={
                "players": tuple(self._players),
                "rounds": tuple(self._rounds),
                "pots": tuple(self._pots),
            }
        )

    def to_json(self, wrapped: bool = True) -> str:
        return serialization.hand_to_json(self.snapshot(), wrapped=wrapped)

    def save_to_file(self, path: Union[str, Path], wrapped: bool = True) -> None:
        serialization.save_to_file(self.snapshot(), path, wrapped=wrapped)

    # --- Internals ---

    def _round_index(self, round_id: int) -> int | None:
        for idx, rnd in enumerate(self._rounds):
            if rnd.id == round_id:
                return idx
        return None

    def _check_action(self, action: Action, last: int | None) -> None:
        if not any(p.id == action.player_id for p in self._players):
            raise PlayerNotFound(action.player_id)
        if last is not None and action.action_number <= last:
            raise ValueError(
                f"Action number {action.action_number} must be greater than {last}"
            )

    def _settle_pot(self, pot: Pot) -> Pot:
        unset = [w.player_id for w in pot.player_wins if w.win_amount is None]
        if not unset:
            return pot
        hand = self.snapshot()
        for pid in unset:
            hand.find_player(pid)

        if len(pot.player_wins) == 1:
            pid = unset[0]
            collect = estimate_win(hand, pid) + uncalled_excess(hand, pid)
            paid = sum(w.win_amount or 0 for p in self._pots for w in p.player_wins)
            shares = {pid: max(0, min(pot.amount, collect - paid))}
        else:
            explicit = sum(w.win_amount or 0 for w in pot.player_wins)
            shares = split_pot(max(0, pot.amount - explicit), unset)

        logger.debug("Pot %d shares: %s", pot.number, shares)
        wins = tuple(
            w if w.win_amount is not None
            else PlayerWin(player_id=w.player_id, win_amount=shares[w.player_id])
            for w in pot.player_wins
        )
        return pot.model_copy(update={"player_wins": wins})
