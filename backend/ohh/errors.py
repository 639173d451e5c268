"""Typed errors raised by the hand history core.

All of them are ``ValueError`` subclasses so callers that already catch
``ValueError`` (the HTTP layer does) keep working.
"""

from __future__ import annotations


class HandHistoryError(ValueError):
    pass


class PlayerNotFound(HandHistoryError):
    def __init__(self, player_id: int) -> None:
        super().__init__(f"Player not found: {player_id}")
        self.player_id = player_id


class DealerSeatNotFound(HandHistoryError):
    def __init__(self, dealer_seat: int) -> None:
        super().__init__(f"No player in dealer seat {dealer_seat}")
        self.dealer_seat = dealer_seat


class RoundNotFound(HandHistoryError):
    def __init__(self, round_id: int) -> None:
        super().__init__(f"Round not found: {round_id}")
        self.round_id = round_id
