from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union

from .cards import Card
from .errors import ValidationError
from .evaluator import HandEvaluation


class Round(str, Enum):
    PRE_FLOP = "PRE_FLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"
    SHOWDOWN = "SHOWDOWN"

    @property
    def display_name(self) -> str:
        return ROUND_NAMES[self]


ROUND_NAMES = {
    Round.PRE_FLOP: "Pre-Flop",
    Round.FLOP: "Flop",
    Round.TURN: "Turn",
    Round.RIVER: "River",
    Round.SHOWDOWN: "Showdown",
}


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    BET = "BET"
    RAISE = "RAISE"


@dataclass(frozen=True)
class Fold:
    kind: ClassVar[ActionType] = ActionType.FOLD


@dataclass(frozen=True)
class Check:
    kind: ClassVar[ActionType] = ActionType.CHECK


@dataclass(frozen=True)
class Call:
    kind: ClassVar[ActionType] = ActionType.CALL


@dataclass(frozen=True)
class Bet:
    amount: int
    kind: ClassVar[ActionType] = ActionType.BET

    def __post_init__(self) -> None:
        _check_amount(self.amount)


@dataclass(frozen=True)
class Raise:
    """Raise the table bet to ``amount`` (an absolute street total, not an increment)."""

    amount: int
    kind: ClassVar[ActionType] = ActionType.RAISE

    def __post_init__(self) -> None:
        _check_amount(self.amount)


Action = Union[Fold, Check, Call, Bet, Raise]


def _check_amount(amount: object) -> None:
    # Chips are whole units; bool is an int subclass but never a stake.
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("BAD_AMOUNT", f"Amount must be a positive integer, got {amount!r}")


def parse_action(kind: Union[str, ActionType], amount: Optional[int] = None) -> Action:
    """Build an action from its wire form (kind name plus optional amount)."""
    try:
        action_type = ActionType(kind.upper() if isinstance(kind, str) else kind)
    except ValueError as exc:
        raise ValidationError("UNKNOWN_ACTION", f"Unsupported action {kind!r}") from exc

    if action_type in (ActionType.BET, ActionType.RAISE):
        if amount is None:
            raise ValidationError("AMOUNT_REQUIRED", f"{action_type.value.title()} requires amount")
        return Bet(amount) if action_type == ActionType.BET else Raise(amount)

    if amount is not None:
        raise ValidationError("UNEXPECTED_AMOUNT", f"{action_type.value.title()} does not take an amount")
    if action_type == ActionType.FOLD:
        return Fold()
    if action_type == ActionType.CHECK:
        return Check()
    return Call()


@dataclass
class TableConfig:
    small_blind: int = 10
    big_blind: int = 20
    starting_stack: int = 1_000
    dealer_seat: int = 0

    def __post_init__(self) -> None:
        if self.small_blind < 1:
            raise ValidationError("BAD_CONFIG", "Small blind must be at least 1")
        if self.big_blind < self.small_blind:
            raise ValidationError("BAD_CONFIG", "Big blind must be at least the small blind")
        if self.starting_stack < 0:
            raise ValidationError("BAD_CONFIG", "Starting stack cannot be negative")
        if self.dealer_seat < 0:
            raise ValidationError("BAD_CONFIG", "Dealer seat cannot be negative")


@dataclass
class Player:
    """A seat's persistent identity and balance plus its state for the current hand."""

    user_id: str
    username: str
    chip_balance: int
    is_active: bool = True
    is_dealt_in: bool = False
    hole_cards: List[Card] = field(default_factory=list)
    current_bet: int = 0
    total_bet: int = 0
    has_folded: bool = False
    has_acted: bool = False
    is_all_in: bool = False
    hand_evaluation: Optional[HandEvaluation] = None

    def __post_init__(self) -> None:
        if self.chip_balance < 0:
            raise ValidationError("BAD_BALANCE", "Chip balance cannot be negative")

    @property
    def in_hand(self) -> bool:
        return self.is_active and self.is_dealt_in and not self.has_folded

    @property
    def can_act(self) -> bool:
        return self.in_hand and not self.is_all_in and self.chip_balance > 0

    @property
    def can_play(self) -> bool:
        """Eligible to be dealt into the next hand."""
        return self.is_active and self.chip_balance > 0

    def reset_for_hand(self) -> None:
        self.is_dealt_in = False
        self.hole_cards = []
        self.current_bet = 0
        self.total_bet = 0
        self.has_folded = False
        self.has_acted = False
        self.is_all_in = False
        self.hand_evaluation = None

    def reset_for_round(self) -> None:
        self.current_bet = 0
        self.has_acted = False

    def place_bet(self, amount: int, forced: bool = False) -> int:
        """Move ``amount`` chips from the balance into this street's bet."""
        if amount < 0 or amount > self.chip_balance:
            raise ValidationError("INSUFFICIENT_CHIPS", f"{self.username} cannot put in {amount} chips")
        self.chip_balance -= amount
        self.current_bet += amount
        self.total_bet += amount
        if not forced:
            self.has_acted = True
        if self.chip_balance == 0:
            self.is_all_in = True
        return amount

    def check(self) -> None:
        self.has_acted = True

    def fold(self) -> None:
        self.has_folded = True
        self.has_acted = True

    def add_chips(self, amount: int) -> None:
        self.chip_balance += amount

    def to_dict(self, reveal: bool = True) -> Dict[str, object]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "chip_balance": self.chip_balance,
            "is_active": self.is_active,
            "is_dealt_in": self.is_dealt_in,
            "hole_cards": [card.label for card in self.hole_cards] if reveal else [],
            "current_bet": self.current_bet,
            "total_bet": self.total_bet,
            "has_folded": self.has_folded,
            "has_acted": self.has_acted,
            "is_all_in": self.is_all_in,
            "hand_evaluation": self.hand_evaluation.to_dict() if reveal and self.hand_evaluation else None,
        }


@dataclass
class ActionRecord:
    player: Optional[str]
    action: str
    amount: Optional[int]
    round: str
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class LegalActions:
    legal: List[ActionType]
    call_amount: Optional[int]
    min_raise_to: Optional[int]
    max_raise_to: Optional[int]
