"""Settlement: what each player nets from a hand.

Two computations live here:

* the pre-award estimate (``estimate_win``): what a player would collect
  if awarded the pot now, with any uncalled part of their own bet
  stripped out;
* the post-award result (``settle``): the recorded pot shares minus
  everything the player put in.

``settle`` is the authoritative one and is what ``did_profit`` uses. Pot
amounts include any uncalled excess handed back to the bettor, so summed
over the table the nets equal the pot amounts minus the chips committed.
"""

from __future__ import annotations

import logging

from ohh.errors import DealerSeatNotFound
from ohh.ledger import Ledger, build_ledger
from ohh.models import HandRecord, PlayerSettlement, SettlementResponse
from ohh.positions import resolve_position

logger = logging.getLogger(__name__)


def _uncalled(ledger: Ledger, player_id: int) -> int:
    own = ledger.contribution(player_id)
    if ledger.others_combined(player_id) >= own:
        return 0
    return own - min(own, ledger.highest_other(player_id))


def _ledger_for(hand: HandRecord, player_id: int, implicit_blinds: bool) -> Ledger:
    hand.find_player(player_id)
    return build_ledger(hand, implicit_blinds=implicit_blinds)


def uncalled_excess(
    hand: HandRecord, player_id: int, *, implicit_blinds: bool = False
) -> int:
    """Part of the player's contribution nobody matched."""
    return _uncalled(_ledger_for(hand, player_id, implicit_blinds), player_id)


def estimate_win(
    hand: HandRecord, player_id: int, *, implicit_blinds: bool = False
) -> int:
    """Amount the player collects if awarded the whole pot.

    When the other players together put in at least as much as the
    player, the whole pot is theirs. Otherwise only the matched part of
    their bet stays in: ``total - own + min(own, highest_other)``.
    """
    ledger = _ledger_for(hand, player_id, implicit_blinds)
    return ledger.total_committed - _uncalled(ledger, player_id)


def estimate_net(
    hand: HandRecord, player_id: int, *, implicit_blinds: bool = False
) -> int:
    """Net result if the player were awarded the whole pot.

    The uncalled excess is handed back rather than won, so either way the
    player ends up with everything the others put in.
    """
    ledger = _ledger_for(hand, player_id, implicit_blinds)
    return ledger.others_combined(player_id)


def amount_won(hand: HandRecord, player_id: int) -> int:
    """Sum of the recorded pot shares for ``player_id``."""
    hand.find_player(player_id)
    return sum(
        win.win_amount or 0
        for pot in hand.pots
        for win in pot.player_wins
        if win.player_id == player_id
    )


def _net(hand: HandRecord, ledger: Ledger, player_id: int) -> int:
    return amount_won(hand, player_id) - ledger.contribution(player_id)


def settle(
    hand: HandRecord, player_id: int, *, implicit_blinds: bool = False
) -> int:
    """Chips the player gained (positive) or lost (negative) this hand.

    Pot shares recorded for the player minus everything they put in.
    """
    ledger = _ledger_for(hand, player_id, implicit_blinds)
    return _net(hand, ledger, player_id)


def did_profit(
    hand: HandRecord, player_id: int, *, implicit_blinds: bool = False
) -> bool:
    return settle(hand, player_id, implicit_blinds=implicit_blinds) > 0


def settle_all(hand: HandRecord, *, implicit_blinds: bool = False) -> dict[int, int]:
    """Net result for every player, keyed by player id."""
    ledger = build_ledger(hand, implicit_blinds=implicit_blinds)
    return {p.id: _net(hand, ledger, p.id) for p in hand.players}


def summarize(
    hand: HandRecord, *, implicit_blinds: bool = False
) -> SettlementResponse:
    """Per-player breakdown of the hand, in seat order."""
    ledger = build_ledger(hand, implicit_blinds=implicit_blinds)
    rows: list[PlayerSettlement] = []
    for p in hand.players_by_seat():
        try:
            position = resolve_position(hand, p.id)
        except DealerSeatNotFound:
            position = None
        won = amount_won(hand, p.id)
        uncalled = _uncalled(ledger, p.id)
        contribution = ledger.contribution(p.id)
        rows.append(
            PlayerSettlement(
                player_id=p.id,
                name=p.name,
                seat=p.seat,
                position=position,
                contribution=contribution,
                uncalled=uncalled,
                won=won,
                net=won - contribution,
            )
        )
    return SettlementResponse(
        game_number=hand.game_number,
        total_committed=ledger.total_committed,
        total_pot=sum(pot.amount for pot in hand.pots),
        players=rows,
    )


def split_pot(amount: int, winners: list[int]) -> dict[int, int]:
    """Split ``amount`` evenly; odd chips go to the earliest winners."""
    if not winners:
        return {}
    share, remainder = divmod(amount, len(winners))
    return {
        pid: share + (1 if idx < remainder else 0)
        for idx, pid in enumerate(winners)
    }
