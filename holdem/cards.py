from __future__ import annotations

import random
from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import FormatError

RANKS = "23456789TJQKA"
SUITS = "hdcs"

RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}
SUIT_NAMES = {"h": "hearts", "d": "diamonds", "c": "clubs", "s": "spades"}
SUIT_SYMBOLS = {"h": "♥", "d": "♦", "c": "♣", "s": "♠"}


@total_ordering
@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise FormatError("BAD_CARD", f"Invalid rank: {self.rank!r}")
        if self.suit not in SUITS:
            raise FormatError("BAD_CARD", f"Invalid suit: {self.suit!r}")

    @classmethod
    def from_string(cls, label: str) -> "Card":
        if not isinstance(label, str) or len(label) != 2:
            raise FormatError("BAD_CARD", f"Invalid card label: {label!r}")
        return cls(label[0].upper(), label[1].lower())

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Card":
        try:
            return cls(str(data["rank"]), str(data["suit"]))
        except KeyError as exc:
            raise FormatError("BAD_CARD", f"Card payload missing {exc.args[0]!r}") from exc

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def value(self) -> int:
        """Rank ordinal with the ace high (2..14)."""
        return RANK_VALUE[self.rank]

    @property
    def suit_name(self) -> str:
        return SUIT_NAMES[self.suit]

    @property
    def display_name(self) -> str:
        rank = "10" if self.rank == "T" else self.rank
        return f"{rank}{SUIT_SYMBOLS[self.suit]}"

    @property
    def is_red(self) -> bool:
        return self.suit in ("h", "d")

    def to_dict(self) -> Dict[str, str]:
        return {"rank": self.rank, "suit": self.suit}

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return (self.value, SUITS.index(self.suit)) < (other.value, SUITS.index(other.suit))

    def __str__(self) -> str:
        return self.label


class Deck:
    """52 unique cards; index 0 is the top of the deck."""

    def __init__(self, cards: Optional[Iterable[Card]] = None, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)
        self.cards: List[Card] = []
        if cards is None:
            self.reset()
        else:
            self.cards = list(cards)

    def reset(self) -> None:
        self.cards = [Card(rank, suit) for suit in SUITS for rank in RANKS]

    def shuffle(self) -> None:
        self._rng.shuffle(self.cards)

    def deal(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop(0)

    def deal_multiple(self, count: int) -> List[Card]:
        dealt: List[Card] = []
        for _ in range(count):
            card = self.deal()
            if card is None:
                break
            dealt.append(card)
        return dealt

    @property
    def remaining_cards(self) -> int:
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def build_deck(seed: Optional[int] = None) -> Deck:
    deck = Deck(seed=seed)
    deck.shuffle()
    return deck


def parse_card(label: str) -> Card:
    return Card.from_string(label)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_card(label) for label in labels]


def cards_to_labels(cards: Iterable[Card]) -> List[str]:
    return [card.label for card in cards]
