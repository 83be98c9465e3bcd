from __future__ import annotations

import functools
import itertools
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import Card
from .errors import InsufficientCardsError, ValidationError

WHEEL_VALUES = {14, 5, 4, 3, 2}


class HandRank(IntEnum):
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9

    @property
    def display_name(self) -> str:
        return RANK_NAMES[self]


RANK_NAMES = {
    HandRank.HIGH_CARD: "High Card",
    HandRank.ONE_PAIR: "One Pair",
    HandRank.TWO_PAIR: "Two Pair",
    HandRank.THREE_OF_A_KIND: "Three of a Kind",
    HandRank.STRAIGHT: "Straight",
    HandRank.FLUSH: "Flush",
    HandRank.FULL_HOUSE: "Full House",
    HandRank.FOUR_OF_A_KIND: "Four of a Kind",
    HandRank.STRAIGHT_FLUSH: "Straight Flush",
    HandRank.ROYAL_FLUSH: "Royal Flush",
}


@functools.total_ordering
@dataclass(eq=False)
class HandEvaluation:
    """Category plus the five cards that make it; ordered by strength."""

    rank: HandRank
    best_hand: List[Card]
    tiebreakers: List[Card] = field(default_factory=list)

    def compare_to(self, other: "HandEvaluation") -> int:
        if self.rank != other.rank:
            return 1 if self.rank > other.rank else -1
        for mine, theirs in zip(self.tiebreakers, other.tiebreakers):
            if mine.value != theirs.value:
                return 1 if mine.value > theirs.value else -1
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandEvaluation):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: "HandEvaluation") -> bool:
        if not isinstance(other, HandEvaluation):
            return NotImplemented
        return self.compare_to(other) < 0

    __hash__ = None  # type: ignore[assignment]

    @property
    def display_name(self) -> str:
        return self.rank.display_name

    def to_dict(self) -> Dict[str, object]:
        return {
            "rank": self.rank.name,
            "name": self.display_name,
            "best_hand": [card.label for card in self.best_hand],
            "tiebreakers": [card.label for card in self.tiebreakers],
        }


def evaluate(cards: Sequence[Card]) -> HandEvaluation:
    """Return the best five-card hand that can be made from 5 or more cards."""
    cards = list(cards)
    if len(cards) < 5:
        raise InsufficientCardsError(len(cards))
    if len(set(cards)) != len(cards):
        raise ValidationError("DUPLICATE_CARDS", "Cards to evaluate must be unique")

    best: Optional[HandEvaluation] = None
    for combo in itertools.combinations(cards, 5):
        evaluation = _evaluate_five(list(combo))
        if best is None or evaluation > best:
            best = evaluation
    assert best is not None
    return best


def compare_hands(first: Sequence[Card], second: Sequence[Card]) -> int:
    return evaluate(first).compare_to(evaluate(second))


def _by_value(cards: Sequence[Card]) -> List[Card]:
    return sorted(cards, key=lambda card: card.value, reverse=True)


def _evaluate_five(hand: List[Card]) -> HandEvaluation:
    ordered = _by_value(hand)
    is_flush = len({card.suit for card in hand}) == 1
    straight = _straight_cards(ordered)

    groups: Dict[int, List[Card]] = {}
    for card in ordered:
        groups.setdefault(card.value, []).append(card)
    # Largest group first, ties broken by rank.
    ordered_groups = sorted(groups.values(), key=lambda cards: (len(cards), cards[0].value), reverse=True)
    shape = [len(cards) for cards in ordered_groups]

    if straight and is_flush:
        if straight[0].value == 14:
            return HandEvaluation(HandRank.ROYAL_FLUSH, straight, [])
        return HandEvaluation(HandRank.STRAIGHT_FLUSH, straight, [straight[0]])
    if shape[0] == 4:
        tiebreakers = ordered_groups[0] + ordered_groups[1]
        return HandEvaluation(HandRank.FOUR_OF_A_KIND, tiebreakers, tiebreakers)
    if shape[:2] == [3, 2]:
        tiebreakers = ordered_groups[0] + ordered_groups[1]
        return HandEvaluation(HandRank.FULL_HOUSE, tiebreakers, tiebreakers)
    if is_flush:
        return HandEvaluation(HandRank.FLUSH, ordered, list(ordered))
    if straight:
        return HandEvaluation(HandRank.STRAIGHT, straight, [straight[0]])
    if shape[0] == 3:
        tiebreakers = ordered_groups[0] + _by_value(ordered_groups[1] + ordered_groups[2])
        return HandEvaluation(HandRank.THREE_OF_A_KIND, tiebreakers, tiebreakers)
    if shape[:2] == [2, 2]:
        tiebreakers = ordered_groups[0] + ordered_groups[1] + ordered_groups[2]
        return HandEvaluation(HandRank.TWO_PAIR, tiebreakers, tiebreakers)
    if shape[0] == 2:
        kickers = _by_value([card for cards in ordered_groups[1:] for card in cards])
        tiebreakers = ordered_groups[0] + kickers
        return HandEvaluation(HandRank.ONE_PAIR, tiebreakers, tiebreakers)
    return HandEvaluation(HandRank.HIGH_CARD, ordered, list(ordered))


def _straight_cards(ordered: List[Card]) -> Optional[List[Card]]:
    """Return the straight high card first, or None. Expects cards sorted high to low."""
    values = [card.value for card in ordered]
    if set(values) == WHEEL_VALUES:
        # Ace plays low: 5-4-3-2-A
        return ordered[1:] + ordered[:1]
    for high, low in zip(values, values[1:]):
        if high - low != 1:
            return None
    return list(ordered)


def describe(evaluation: HandEvaluation) -> str:
    return f"{evaluation.display_name} ({' '.join(card.label for card in evaluation.best_hand)})"


def rank_hands(hands: Dict[int, Sequence[Card]]) -> Tuple[List[int], Dict[int, HandEvaluation]]:
    """Evaluate each seat's cards and return (winning seats in seat order, evaluations)."""
    evaluations = {seat: evaluate(cards) for seat, cards in hands.items()}
    if not evaluations:
        return [], evaluations
    best = max(evaluations.values())
    winners = sorted(seat for seat, evaluation in evaluations.items() if evaluation == best)
    return winners, evaluations
