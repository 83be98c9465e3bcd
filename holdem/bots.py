"""Baseline bot for the simulator CLI and stress tests; not part of the engine API."""

from __future__ import annotations

import random
from typing import List, Optional

from .cards import Card
from .game import GameEngine
from .models import Action, ActionType, Bet, Call, Check, Fold, Raise, Round


def rough_hand_strength(hole: List[Card]) -> int:
    """Very rough proxy for hand quality used to drive aggression choices."""
    if len(hole) < 2:
        return 0

    first, second = hole[0], hole[1]
    score = first.value + second.value
    if first.rank == second.rank:
        score += 14  # pairs are quite strong pre-flop
    else:
        gap = abs(first.value - second.value)
        if gap == 1:
            score += 4
        elif gap == 2:
            score += 2
    if first.suit == second.suit:
        score += 3
    if min(first.value, second.value) >= 11:
        score += 2
    return score


def _should_raise(strength: int, street: Round, facing_bet: bool, rng: random.Random) -> bool:
    base = 0.2 if facing_bet else 0.35
    street_bonus = {
        Round.PRE_FLOP: 0.0,
        Round.FLOP: 0.05,
        Round.TURN: 0.1,
        Round.RIVER: 0.12,
    }.get(street, 0.0)
    probability = min(0.85, base + street_bonus + min(strength / 45.0, 0.45))

    # Always attack with premium holdings.
    if strength >= 36:
        return True
    return rng.random() < probability


def _choose_amount(min_to: Optional[int], max_to: Optional[int], facing_bet: bool, rng: random.Random) -> int:
    if min_to is None:
        raise ValueError("Raise requested without a minimum amount")
    if max_to is None or max_to <= min_to:
        return min_to

    roll = rng.random()
    if roll < (0.2 if facing_bet else 0.35):
        return min_to
    if roll > (0.85 if facing_bet else 0.9):
        return max_to
    return min_to + int((max_to - min_to) * rng.random())


def baseline_strategy(engine: GameEngine, rng: random.Random) -> Action:
    """Demo bot: mixes random raises with a bias toward stronger holdings."""
    options = engine.legal_actions()
    player = engine.current_player
    hole = player.hole_cards if player else []
    strength = rough_hand_strength(hole)
    facing_bet = options.call_amount is not None

    aggressive = ActionType.BET in options.legal or ActionType.RAISE in options.legal
    if aggressive and hole and _should_raise(strength, engine.current_round, facing_bet, rng):
        amount = _choose_amount(options.min_raise_to, options.max_raise_to, facing_bet, rng)
        if ActionType.BET in options.legal:
            return Bet(amount)
        return Raise(amount)

    if ActionType.CHECK in options.legal:
        return Check()
    # Weak hands give up against big bets.
    if options.call_amount is not None and player and options.call_amount > player.chip_balance // 2 and strength < 20:
        return Fold()
    return Call()
