from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from holdem.cards import Deck, parse_cards
from holdem.game import GameEngine
from holdem.models import Action, Call, Check, Player, TableConfig


def create_engine(
    *,
    seats: int = 4,
    starting_stack: int = 1_000,
    sb: int = 10,
    bb: int = 20,
    dealer_seat: int = 0,
) -> GameEngine:
    """Instantiate an engine with a fully seated table."""
    config = TableConfig(small_blind=sb, big_blind=bb, starting_stack=starting_stack, dealer_seat=dealer_seat)
    players = [
        Player(user_id=f"u{idx}", username=f"Player{idx}", chip_balance=starting_stack) for idx in range(seats)
    ]
    return GameEngine(players, config)


def start_hand(engine: GameEngine, seed: int = 42) -> List[dict]:
    events = engine.start_new_hand(seed=seed)
    assert engine.hand_in_progress or engine.winners
    return events


def perform_actions(engine: GameEngine, actions: Iterable[Tuple[int, Action]]) -> List[dict]:
    """Apply a scripted sequence of (seat, action) pairs, checking whose turn it is."""
    events: List[dict] = []
    for seat_idx, action in actions:
        events.extend(engine.perform_action(action, seat=seat_idx))
    return events


def passive_action(engine: GameEngine) -> Action:
    return Check() if engine.can_check() else Call()


def auto_complete_hand(engine: GameEngine) -> List[dict]:
    """Check or call every decision until the hand ends."""
    events: List[dict] = []
    while engine.hand_in_progress:
        events.extend(engine.perform_action(passive_action(engine)))
    return events


def stack_deck(monkeypatch, labels: Sequence[str]) -> None:
    """Make the next hand deal ``labels`` first (hole cards round-robin from the dealer's left, then the board)."""
    top = parse_cards(labels)
    rest = [card for card in Deck().cards if card not in top]
    monkeypatch.setattr("holdem.game.build_deck", lambda seed=None: Deck(top + rest))


def pot_matches_bets(engine: GameEngine) -> bool:
    return engine.pot == sum(player.total_bet for player in engine.players)
