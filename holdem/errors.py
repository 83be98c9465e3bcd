from __future__ import annotations


class PokerError(Exception):
    """Base class for every error the engine reports to its caller."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ValidationError(PokerError, ValueError):
    """The request was well formed but breaks a betting or evaluation rule."""


class InsufficientCardsError(ValidationError):
    def __init__(self, count: int) -> None:
        super().__init__("INSUFFICIENT_CARDS", f"Need at least 5 cards to evaluate a hand, got {count}")
        self.count = count


class StateError(PokerError, RuntimeError):
    """The request does not fit the current hand state (wrong turn, no hand, ...)."""


class FormatError(PokerError, ValueError):
    """A card label could not be parsed."""
