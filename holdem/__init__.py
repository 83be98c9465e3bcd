"""Texas Hold'em betting and hand-ranking engine."""

from .cards import RANKS, SUITS, Card, Deck, build_deck, cards_to_labels, parse_card, parse_cards
from .errors import FormatError, InsufficientCardsError, PokerError, StateError, ValidationError
from .evaluator import HandEvaluation, HandRank, evaluate
from .game import GameEngine
from .models import (
    Action,
    ActionRecord,
    ActionType,
    Bet,
    Call,
    Check,
    Fold,
    LegalActions,
    Player,
    Raise,
    Round,
    TableConfig,
    parse_action,
)

__all__ = [
    "RANKS",
    "SUITS",
    "Card",
    "Deck",
    "build_deck",
    "cards_to_labels",
    "parse_card",
    "parse_cards",
    "FormatError",
    "InsufficientCardsError",
    "PokerError",
    "StateError",
    "ValidationError",
    "HandEvaluation",
    "HandRank",
    "evaluate",
    "GameEngine",
    "Action",
    "ActionRecord",
    "ActionType",
    "Bet",
    "Call",
    "Check",
    "Fold",
    "LegalActions",
    "Player",
    "Raise",
    "Round",
    "TableConfig",
    "parse_action",
]
