import json

import pytest

from holdem.errors import StateError
from holdem.evaluator import HandRank
from holdem.models import ActionType, Call, Check, Fold, Raise, Round

from .helpers import auto_complete_hand, create_engine, perform_actions, pot_matches_bets, stack_deck, start_hand


def test_start_hand_assigns_dealer_and_posts_blinds():
    engine = create_engine()
    events = start_hand(engine)

    assert engine.hand_in_progress
    assert engine.current_round == Round.PRE_FLOP
    assert (engine.dealer_position, engine.small_blind_position, engine.big_blind_position) == (0, 1, 2)
    assert engine.current_player_index == 3
    assert engine.pot == 30
    assert engine.current_bet == 20
    assert engine.min_raise == 20
    assert [(ev["player"], ev["action"], ev["amount"]) for ev in events] == [
        ("Player1", "posts small blind", 10),
        ("Player2", "posts big blind", 20),
    ]
    assert all(len(player.hole_cards) == 2 for player in engine.players)
    assert engine.deck.remaining_cards == 52 - 8


def test_heads_up_dealer_posts_small_blind_and_acts_first_pre_flop():
    engine = create_engine(seats=2)
    start_hand(engine, seed=123)

    assert engine.dealer_position == engine.small_blind_position == 0
    assert engine.big_blind_position == 1
    assert engine.current_player_index == 0

    perform_actions(engine, [(0, Call()), (1, Check())])
    assert engine.current_round == Round.FLOP
    assert engine.current_player_index == 1

    perform_actions(engine, [(1, Check()), (0, Check())])
    assert engine.current_round == Round.TURN
    assert engine.current_player_index == 1


def test_big_blind_keeps_option_when_everyone_limps():
    engine = create_engine(seats=3)
    start_hand(engine)

    perform_actions(engine, [(0, Call()), (1, Call())])
    assert engine.current_round == Round.PRE_FLOP
    assert engine.current_player_index == 2
    legal = engine.legal_actions()
    assert legal.legal == [ActionType.FOLD, ActionType.CHECK, ActionType.RAISE]
    assert legal.call_amount is None

    perform_actions(engine, [(2, Check())])
    assert engine.current_round == Round.FLOP
    assert len(engine.community_cards) == 3
    assert engine.current_player_index == 1


def test_round_advance_resets_street_bets_but_keeps_min_raise():
    engine = create_engine()
    start_hand(engine)

    perform_actions(engine, [(3, Raise(60))])
    assert engine.min_raise == 40
    perform_actions(engine, [(0, Call()), (1, Call()), (2, Call())])

    assert engine.current_round == Round.FLOP
    assert engine.current_bet == 0
    assert engine.min_raise == 40
    assert engine.pot == 240
    assert all(player.current_bet == 0 and not player.has_acted for player in engine.players)
    assert all(player.total_bet == 60 for player in engine.players)
    assert engine.current_player_index == 1


def test_streets_deal_three_one_one_then_showdown():
    engine = create_engine()
    start_hand(engine, seed=9)
    opening_total = engine.total_chips()

    seen = []
    while engine.hand_in_progress:
        seen.append((engine.current_round, len(engine.community_cards)))
        engine.perform_action(Check() if engine.can_check() else Call())
        assert pot_matches_bets(engine) or not engine.hand_in_progress

    assert (Round.FLOP, 3) in seen and (Round.TURN, 4) in seen and (Round.RIVER, 5) in seen
    assert engine.current_round == Round.SHOWDOWN
    assert engine.pot == 0
    assert engine.winners
    assert engine.total_chips() == opening_total

    results = engine.showdown_results()
    assert sorted(results) == [0, 1, 2, 3]
    assert all(len(evaluation.best_hand) == 5 for evaluation in results.values())


def test_turn_order_skips_folded_and_all_in_seats_with_wrap_around():
    engine = create_engine()
    engine.players[3].chip_balance = 100
    start_hand(engine)

    perform_actions(engine, [(3, Raise(100)), (0, Call()), (1, Call()), (2, Fold())])
    assert engine.players[3].is_all_in
    assert engine.players[2].has_folded
    assert engine.current_round == Round.FLOP
    assert engine.current_player_index == 1

    perform_actions(engine, [(1, Check())])
    assert engine.current_player_index == 0


def test_early_win_awards_pot_without_evaluation(monkeypatch):
    def fail(*_args, **_kwargs):
        raise AssertionError("hand evaluation should not run")

    monkeypatch.setattr("holdem.game.rank_hands", fail)
    engine = create_engine()
    start_hand(engine)

    events = perform_actions(engine, [(3, Fold()), (0, Fold()), (1, Fold())])

    assert not engine.hand_in_progress
    assert engine.winners == [2]
    assert engine.players[2].chip_balance == 1_010
    assert engine.players[1].chip_balance == 990
    assert engine.pot == 0
    assert events[-1]["action"] == "wins the pot (all others folded)"
    assert events[-1]["amount"] == 30
    assert all(player.hand_evaluation is None for player in engine.players)
    with pytest.raises(StateError, match="river completes"):
        engine.showdown_results()


def test_showdown_pays_best_hand(monkeypatch):
    # Heads-up deal order: seat 1, seat 0, seat 1, seat 0, then the board.
    stack_deck(monkeypatch, ["Kc", "As", "Kd", "Ad", "2h", "7s", "9c", "Jd", "3h"])
    engine = create_engine(seats=2)
    start_hand(engine)

    events = auto_complete_hand(engine)

    assert engine.winners == [0]
    assert engine.players[0].chip_balance == 1_020
    assert engine.players[1].chip_balance == 980
    assert engine.players[0].hand_evaluation.rank == HandRank.ONE_PAIR
    actions = [ev["action"] for ev in events]
    assert "shows One Pair" in actions
    assert "wins the pot with One Pair" in actions
    assert engine.payouts == {0: 40}


def test_board_tie_splits_pot_evenly(monkeypatch):
    stack_deck(monkeypatch, ["2c", "3c", "4c", "2d", "3d", "4d", "Ah", "Kh", "Qh", "Jh", "Th"])
    engine = create_engine(seats=3)
    start_hand(engine)

    events = auto_complete_hand(engine)

    assert engine.winners == [0, 1, 2]
    assert [player.chip_balance for player in engine.players] == [1_000, 1_000, 1_000]
    assert "Player0, Player1, Player2 tie and split the pot" in [ev["action"] for ev in events]


def test_split_pot_remainder_goes_to_earliest_winners():
    engine = create_engine(seats=3)
    start_hand(engine)
    balances = [player.chip_balance for player in engine.players]

    engine.pot = 100
    engine.winners = [0, 1, 2]
    engine._distribute_pot()

    gained = [player.chip_balance - before for player, before in zip(engine.players, balances)]
    assert gained == [34, 33, 33]
    assert sum(gained) == 100
    assert engine.pot == 0


def test_all_in_preflop_runs_out_the_board():
    engine = create_engine(seats=2)
    start_hand(engine, seed=5)
    opening_total = engine.total_chips()

    perform_actions(engine, [(0, Raise(1_000)), (1, Call())])

    assert not engine.hand_in_progress
    assert engine.current_round == Round.SHOWDOWN
    assert len(engine.community_cards) == 5
    assert engine.pot == 0
    assert engine.total_chips() == opening_total
    assert sum(engine.payouts.values()) == 2_000


def test_all_in_player_shares_whole_pot_without_side_pots(monkeypatch):
    # Seat order from the dealer's left: 1, 2, 0.
    stack_deck(monkeypatch, ["Kc", "2s", "Ac", "Kd", "7d", "Ad", "Ah", "Kh", "Qh", "Jh", "Th"])
    engine = create_engine(seats=3)
    engine.players[0].chip_balance = 100
    start_hand(engine)

    perform_actions(engine, [(0, Raise(100)), (1, Raise(400)), (2, Call())])
    auto_complete_hand(engine)

    # Everyone plays the royal flush on board; the short stack still takes a third of 900.
    assert engine.winners == [0, 1, 2]
    assert engine.payouts == {0: 300, 1: 300, 2: 300}
    assert engine.players[0].chip_balance == 300


def test_history_entries_have_expected_shape():
    engine = create_engine()
    start_hand(engine)
    perform_actions(engine, [(3, Call())])

    entry = engine.action_history[-1].to_dict()
    assert set(entry) == {"player", "action", "amount", "round", "timestamp"}
    assert entry["player"] == "Player3"
    assert entry["action"] == "calls"
    assert entry["amount"] == 20
    assert entry["round"] == "Pre-Flop"
    assert isinstance(entry["timestamp"], int)


def test_snapshot_is_serializable_and_hides_other_hole_cards():
    engine = create_engine(seats=3)
    start_hand(engine)

    full = engine.snapshot()
    json.dumps(full)
    assert full["pot"] == 30
    assert full["current_round"] == "PRE_FLOP"
    assert all(len(seat["hole_cards"]) == 2 for seat in full["players"])

    view = engine.snapshot(seat=0)
    assert view["players"][0]["hole_cards"]
    assert view["players"][1]["hole_cards"] == []
    assert view["legal"] == ["FOLD", "CALL", "RAISE"]
    assert view["call_amount"] == 20
    assert view["min_raise_to"] == 40
    assert view["max_raise_to"] == 1_000

    assert "legal" not in engine.snapshot(seat=1)
