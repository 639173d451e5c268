"""Table positions derived from seat order and the dealer seat."""

from __future__ import annotations

from ohh.errors import DealerSeatNotFound, PlayerNotFound
from ohh.models import HandRecord, Player, Position

_POSITION_BY_OFFSET = {
    0: Position.BUTTON,
    1: Position.SMALL_BLIND,
    2: Position.BIG_BLIND,
}


def _dealer_index(hand: HandRecord, seated: list[Player]) -> int:
    for idx, p in enumerate(seated):
        if p.seat == hand.dealer_seat:
            return idx
    raise DealerSeatNotFound(hand.dealer_seat)


def resolve_position(hand: HandRecord, player_id: int) -> Position:
    """Return the position of ``player_id`` relative to the dealer.

    Offsets are counted clockwise in seat order and wrap around the table,
    so with the dealer in the highest seat the lowest seat is the small
    blind. Two-handed tables are not special-cased: the non-dealer
    resolves to the small blind.
    """
    seated = hand.players_by_seat()
    player_idx = next(
        (idx for idx, p in enumerate(seated) if p.id == player_id), None
    )
    if player_idx is None:
        raise PlayerNotFound(player_id)
    dealer_idx = _dealer_index(hand, seated)
    offset = (player_idx - dealer_idx) % len(seated)
    return _POSITION_BY_OFFSET.get(offset, Position.OTHER)


def resolve_positions(hand: HandRecord) -> dict[int, Position]:
    """Positions for every seated player, keyed by player id."""
    return {p.id: resolve_position(hand, p.id) for p in hand.players}


def player_in_position(hand: HandRecord, position: Position) -> int | None:
    """Id of the player holding ``position``, or None if nobody does."""
    for pid, pos in resolve_positions(hand).items():
        if pos == position:
            return pid
    return None
