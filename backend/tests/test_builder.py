"""Tests for HandHistoryBuilder — appends, snapshots and pot settlement."""

import json

import pytest
from pydantic import ValidationError

from ohh.builder import HandHistoryBuilder
from ohh.errors import PlayerNotFound, RoundNotFound
from ohh.models import Action, ActionKind, Player, Pot, PlayerWin, Round, Street
from ohh.serialization import load_from_file
from ohh.settlement import amount_won, settle, settle_all


# ── Helpers ──────────────────────────────────────────────────────────

def _make_builder(n_players: int = 3, **kwargs) -> HandHistoryBuilder:
    """Builder with blinds 5/10 and n_players seated in seats 1..n."""
    b = HandHistoryBuilder(
        small_blind_amount=kwargs.pop("small_blind_amount", 5),
        big_blind_amount=kwargs.pop("big_blind_amount", 10),
        **kwargs,
    )
    for i in range(1, n_players + 1):
        b.add_player(Player(id=i, seat=i, starting_stack=1000, name=f"Player{i}"))
    return b


def _play_called_raise(b: HandHistoryBuilder) -> None:
    b.add_round(Round(id=1, street=Street.PREFLOP))
    b.add_action_to_round(1, Action(action_number=1, player_id=2, action=ActionKind.POST_SB, amount=5))
    b.add_action_to_round(1, Action(action_number=2, player_id=3, action=ActionKind.POST_BB, amount=10))
    b.add_action_to_round(1, Action(action_number=3, player_id=1, action=ActionKind.RAISE, amount=20))
    b.add_action_to_round(1, Action(action_number=4, player_id=2, action=ActionKind.CALL, amount=15))
    b.add_action_to_round(1, Action(action_number=5, player_id=3, action=ActionKind.FOLD))


# ── Construction ─────────────────────────────────────────────────────

class TestConstruction:
    def test_default_values(self):
        hand = HandHistoryBuilder().snapshot()
        assert hand.spec_version == "1.4.6"
        assert hand.game_type == "Holdem"
        assert hand.table_size == 3
        assert hand.currency == "Chips"
        assert hand.players == ()
        assert hand.rounds == ()
        assert hand.pots == ()

    def test_custom_values(self):
        hand = HandHistoryBuilder(
            spec_version="2.0.0", game_type="PLO", table_size=6, currency="USD"
        ).snapshot()
        assert hand.spec_version == "2.0.0"
        assert hand.game_type == "PLO"
        assert hand.table_size == 6
        assert hand.currency == "USD"

    def test_camel_case_config(self):
        hand = HandHistoryBuilder(specVersion="2.0.0", dealerSeat=3).snapshot()
        assert hand.spec_version == "2.0.0"
        assert hand.dealer_seat == 3

    def test_collections_not_accepted(self):
        with pytest.raises(TypeError):
            HandHistoryBuilder(players=[])

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            HandHistoryBuilder(small_blind_amount=-1)


# ── Players ──────────────────────────────────────────────────────────

class TestAddPlayer:
    def test_adds_player(self):
        b = HandHistoryBuilder()
        b.add_player({"name": "Player 1", "id": 1, "startingStack": 1000, "seat": 1})
        hand = b.snapshot()
        assert len(hand.players) == 1
        assert hand.players[0] == Player(id=1, seat=1, starting_stack=1000, name="Player 1")

    def test_adds_multiple_in_order(self):
        b = HandHistoryBuilder()
        b.add_player(Player(id=2, seat=2, starting_stack=2000, name="Player 2"))
        b.add_player(Player(id=1, seat=1, starting_stack=1000, name="Player 1"))
        assert [p.id for p in b.snapshot().players] == [2, 1]

    def test_duplicate_id(self):
        b = _make_builder(2)
        with pytest.raises(ValueError, match="Duplicate player id"):
            b.add_player(Player(id=1, seat=5, starting_stack=100, name="Dup"))

    def test_duplicate_seat(self):
        b = _make_builder(2)
        with pytest.raises(ValueError, match="already taken"):
            b.add_player(Player(id=9, seat=2, starting_stack=100, name="Dup"))


# ── Rounds and actions ───────────────────────────────────────────────

class TestRoundsAndActions:
    def test_adds_round(self):
        b = HandHistoryBuilder()
        b.add_round({"id": 1, "street": "PREFLOP", "actions": [], "cards": ["As", "Kd"]})
        hand = b.snapshot()
        assert len(hand.rounds) == 1
        assert hand.rounds[0].street == Street.PREFLOP
        assert hand.rounds[0].cards == ("As", "Kd")

    def test_adds_action_to_round(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        b.add_action_to_round(1, {"actionNumber": 1, "playerId": 1, "action": "RAISE", "amount": 100})
        actions = b.snapshot().rounds[0].actions
        assert len(actions) == 1
        assert actions[0].action == ActionKind.RAISE
        assert actions[0].amount == 100

    def test_unknown_round_is_ignored(self, caplog):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        before = b.snapshot()
        with caplog.at_level("DEBUG", logger="ohh.builder"):
            b.add_action_to_round(7, Action(action_number=1, player_id=1, action=ActionKind.FOLD))
        assert b.snapshot() == before
        assert "round 7 not found" in caplog.text

    def test_unknown_round_does_not_consume_number(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        b.add_action_to_round(7, Action(action_number=1, player_id=1, action=ActionKind.FOLD))
        b.add_action_to_round(1, Action(action_number=1, player_id=1, action=ActionKind.FOLD))
        assert len(b.snapshot().rounds[0].actions) == 1

    def test_unknown_actor(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        with pytest.raises(PlayerNotFound):
            b.add_action_to_round(1, Action(action_number=1, player_id=5, action=ActionKind.FOLD))

    def test_action_numbers_must_increase(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        b.add_round(Round(id=2, street=Street.FLOP))
        b.add_action_to_round(1, Action(action_number=5, player_id=1, action=ActionKind.CHECK))
        with pytest.raises(ValueError, match="must be greater"):
            b.add_action_to_round(2, Action(action_number=5, player_id=2, action=ActionKind.CHECK))

    def test_round_with_actions_checked(self):
        b = _make_builder(2)
        with pytest.raises(PlayerNotFound):
            b.add_round(Round(id=1, street=Street.PREFLOP, actions=[
                Action(action_number=1, player_id=3, action=ActionKind.FOLD),
            ]))
        assert b.snapshot().rounds == ()

    def test_round_with_actions_advances_numbering(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP, actions=[
            Action(action_number=1, player_id=1, action=ActionKind.CHECK),
            Action(action_number=2, player_id=2, action=ActionKind.CHECK),
        ]))
        with pytest.raises(ValueError):
            b.add_action_to_round(1, Action(action_number=2, player_id=1, action=ActionKind.CHECK))

    def test_get_round(self):
        b = _make_builder(2)
        b.add_round(Round(id=3, street=Street.TURN))
        assert b.get_round(3).street == Street.TURN
        with pytest.raises(RoundNotFound) as exc:
            b.get_round(4)
        assert exc.value.round_id == 4


# ── Pots ─────────────────────────────────────────────────────────────

class TestAddPot:
    def test_explicit_win_amount_kept(self):
        b = _make_builder(1)
        b.add_pot({"number": 1, "amount": 1000, "playerWins": [{"playerId": 1, "winAmount": 1000}]})
        pot = b.snapshot().pots[0]
        assert pot.amount == 1000
        assert pot.player_wins[0].win_amount == 1000

    def test_single_winner_gets_estimate(self):
        b = _make_builder(3)
        _play_called_raise(b)
        pot = b.add_pot(Pot(number=1, amount=50, player_wins=[PlayerWin(player_id=1)]))
        assert pot.player_wins[0].win_amount == 50

    def test_uncalled_bet_comes_back_with_the_pot(self):
        b = _make_builder(3)
        b.add_round(Round(id=1, street=Street.PREFLOP, actions=[
            Action(action_number=1, player_id=2, action=ActionKind.POST_SB, amount=5),
            Action(action_number=2, player_id=3, action=ActionKind.POST_BB, amount=10),
            Action(action_number=3, player_id=1, action=ActionKind.BET, amount=100),
            Action(action_number=4, player_id=2, action=ActionKind.FOLD),
            Action(action_number=5, player_id=3, action=ActionKind.FOLD),
        ]))
        pot = b.add_pot(Pot(number=1, amount=115, player_wins=[PlayerWin(player_id=1)]))
        assert pot.player_wins[0].win_amount == 115
        hand = b.snapshot()
        assert settle(hand, 1) == 15
        assert sum(settle_all(hand).values()) == 0

    def test_single_winner_capped_at_pot_amount(self):
        b = _make_builder(3)
        _play_called_raise(b)
        pot = b.add_pot(Pot(number=1, amount=30, player_wins=[PlayerWin(player_id=1)]))
        assert pot.player_wins[0].win_amount == 30

    def test_main_and_side_pot_not_paid_twice(self):
        b = _make_builder(3)
        b.add_round(Round(id=1, street=Street.PREFLOP, actions=[
            Action(action_number=1, player_id=1, action=ActionKind.BET, amount=20, is_allin=True),
            Action(action_number=2, player_id=2, action=ActionKind.CALL, amount=20, is_allin=True),
            Action(action_number=3, player_id=3, action=ActionKind.CALL, amount=20, is_allin=True),
        ]))
        main = b.add_pot(Pot(number=1, amount=40, player_wins=[PlayerWin(player_id=1)]))
        side = b.add_pot(Pot(number=2, amount=20, player_wins=[PlayerWin(player_id=1)]))
        assert main.player_wins[0].win_amount == 40
        assert side.player_wins[0].win_amount == 20
        hand = b.snapshot()
        assert amount_won(hand, 1) == 60
        assert sum(settle_all(hand).values()) == 0

    def test_later_pot_gets_only_what_is_left(self):
        b = _make_builder(3)
        _play_called_raise(b)
        b.add_pot(Pot(number=1, amount=40, player_wins=[PlayerWin(player_id=1)]))
        extra = b.add_pot(Pot(number=2, amount=40, player_wins=[PlayerWin(player_id=1)]))
        assert extra.player_wins[0].win_amount == 10

    def test_multiple_winners_split(self):
        b = _make_builder(3)
        _play_called_raise(b)
        pot = b.add_pot(Pot(number=1, amount=51, player_wins=[
            PlayerWin(player_id=2), PlayerWin(player_id=1),
        ]))
        assert [(w.player_id, w.win_amount) for w in pot.player_wins] == [(2, 26), (1, 25)]

    def test_split_respects_explicit_shares(self):
        b = _make_builder(3)
        _play_called_raise(b)
        pot = b.add_pot(Pot(number=1, amount=50, player_wins=[
            PlayerWin(player_id=1, win_amount=30), PlayerWin(player_id=2),
        ]))
        assert [w.win_amount for w in pot.player_wins] == [30, 20]

    def test_unknown_winner(self):
        b = _make_builder(2)
        with pytest.raises(PlayerNotFound):
            b.add_pot(Pot(number=1, amount=10, player_wins=[PlayerWin(player_id=9)]))


# ── Full hand ────────────────────────────────────────────────────────

class TestCompleteHand:
    def test_complex_hand(self):
        b = _make_builder(2)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        b.add_action_to_round(1, Action(action_number=1, player_id=1, action=ActionKind.RAISE, amount=100))
        b.add_action_to_round(1, Action(action_number=2, player_id=2, action=ActionKind.CALL, amount=100))
        b.add_pot(Pot(number=1, amount=200, player_wins=[PlayerWin(player_id=1, win_amount=200)]))

        hand = b.snapshot()
        assert len(hand.players) == 2
        assert len(hand.rounds) == 1
        assert len(hand.rounds[0].actions) == 2
        assert len(hand.pots) == 1

    def test_snapshot_unaffected_by_later_appends(self):
        b = _make_builder(3)
        b.add_round(Round(id=1, street=Street.PREFLOP))
        first = b.snapshot()
        b.add_action_to_round(1, Action(action_number=1, player_id=1, action=ActionKind.FOLD))
        assert first.rounds[0].actions == ()
        assert len(b.snapshot().rounds[0].actions) == 1

    def test_snapshot_is_frozen(self):
        hand = _make_builder(2).snapshot()
        with pytest.raises(ValidationError):
            hand.dealer_seat = 2

    def test_to_json_wrapped(self):
        b = _make_builder(3)
        _play_called_raise(b)
        data = json.loads(b.to_json())
        assert list(data) == ["ohh"]
        assert data["ohh"]["rounds"][0]["actions"][2]["action"] == "Raise"

    def test_save_to_file(self, tmp_path):
        b = _make_builder(3)
        _play_called_raise(b)
        b.add_pot(Pot(number=1, amount=50, player_wins=[PlayerWin(player_id=1)]))
        path = tmp_path / "hand.ohh"
        b.save_to_file(path)
        [restored] = load_from_file(path)
        assert restored == b.snapshot()
