from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

from .cards import Card, Deck, build_deck
from .errors import StateError, ValidationError
from .evaluator import HandEvaluation, rank_hands
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

LOGGER = logging.getLogger("holdem.game")

# Two hole cards each plus a five card board must fit in one deck.
MAX_SEATS = 23

# GameEngine keeps all table state in memory. No networking or persistence
# lives here, only poker rules, chip accounting, and betting order.


class GameEngine:
    """No-Limit Texas Hold'em betting engine for a single table.

    Seats are addressed by index into ``players``. The engine lives as long as
    the table does: chip balances and the dealer button carry over from one
    hand to the next.
    """

    def __init__(self, players: Sequence[Player], config: Optional[TableConfig] = None) -> None:
        self.config = config or TableConfig()
        if len(players) < 2:
            raise ValidationError("NOT_ENOUGH_SEATS", "A table needs at least two seats")
        if len(players) > MAX_SEATS:
            raise ValidationError("TOO_MANY_SEATS", f"A table seats at most {MAX_SEATS} players")
        if self.config.dealer_seat >= len(players):
            raise ValidationError("BAD_CONFIG", "Dealer seat is outside the table")

        self.players: List[Player] = list(players)
        self.deck = Deck()
        self.community_cards: List[Card] = []
        self.current_round = Round.PRE_FLOP
        self.pot = 0
        self.current_bet = 0
        self.min_raise = self.config.big_blind
        self.winners: List[int] = []
        self.payouts: Dict[int, int] = {}
        self.evaluations: Dict[int, HandEvaluation] = {}
        self.action_history: List[ActionRecord] = []
        self.hand_in_progress = False
        self.hand_number = 0
        self.heads_up = len(self.players) == 2

        seats = len(self.players)
        self.dealer_position = self.config.dealer_seat
        if self.heads_up:
            self.small_blind_position = self.dealer_position
            self.big_blind_position = (self.dealer_position + 1) % seats
            self.current_player_index: Optional[int] = self.dealer_position
        else:
            self.small_blind_position = (self.dealer_position + 1) % seats
            self.big_blind_position = (self.dealer_position + 2) % seats
            self.current_player_index = (self.big_blind_position + 1) % seats

        self._events: List[ActionRecord] = []

    # Seat helpers ----------------------------------------------------

    @property
    def current_player(self) -> Optional[Player]:
        if self.current_player_index is None:
            return None
        return self.players[self.current_player_index]

    @property
    def dealer(self) -> Player:
        return self.players[self.dealer_position]

    @property
    def small_blind(self) -> Player:
        return self.players[self.small_blind_position]

    @property
    def big_blind(self) -> Player:
        return self.players[self.big_blind_position]

    def players_in_hand(self) -> List[int]:
        return [idx for idx, player in enumerate(self.players) if player.in_hand]

    def total_chips(self) -> int:
        return sum(player.chip_balance for player in self.players) + self.pot

    def can_start_hand(self) -> bool:
        return len([player for player in self.players if player.can_play]) >= 2

    def is_match_over(self) -> bool:
        return not self.hand_in_progress and not self.can_start_hand()

    def _next_playable_seat(self, start: int) -> int:
        # Seat after ``start`` that can be dealt in; only valid between hands.
        seats = len(self.players)
        idx = (start + 1) % seats
        for _ in range(seats):
            if self.players[idx].can_play:
                return idx
            idx = (idx + 1) % seats
        raise StateError("NOT_ENOUGH_PLAYERS", "No seat can be dealt in")

    def _first_actor_from(self, start: int) -> Optional[int]:
        # ``start`` itself is a candidate; wraps around the table once.
        seats = len(self.players)
        idx = start % seats
        for _ in range(seats):
            if self.players[idx].can_act:
                return idx
            idx = (idx + 1) % seats
        return None

    # Hand lifecycle --------------------------------------------------

    def start_new_hand(self, seed: Optional[int] = None) -> List[Dict[str, object]]:
        if self.hand_in_progress:
            raise StateError("HAND_IN_PROGRESS", "A hand is already in progress")
        if not self.can_start_hand():
            raise StateError("NOT_ENOUGH_PLAYERS", "Not enough players with chips to start a hand")

        self._events = []
        for player in self.players:
            player.reset_for_hand()

        self.deck = build_deck(seed)
        self.community_cards = []
        self.current_round = Round.PRE_FLOP
        self.pot = 0
        self.current_bet = 0
        self.min_raise = self.config.big_blind
        self.winners = []
        self.payouts = {}
        self.evaluations = {}
        self.action_history = []

        self._move_positions(first_hand=self.hand_number == 0)
        self.hand_number += 1
        self.hand_in_progress = True

        self._deal_hole_cards()
        self._post_blinds()

        if self.heads_up:
            first = self.dealer_position
        else:
            first = (self.big_blind_position + 1) % len(self.players)
        self.current_player_index = self._first_actor_from(first)

        LOGGER.info(
            "Hand %s started: dealer=%s sb=%s bb=%s players=%s",
            self.hand_number,
            self.dealer_position,
            self.small_blind_position,
            self.big_blind_position,
            len(self.players_in_hand()),
        )

        # Blinds alone can leave nobody able to bet (short stacks all-in).
        self._settle_rounds()
        return self._drain_events()

    def _move_positions(self, first_hand: bool) -> None:
        if first_hand:
            self.dealer_position = self._next_playable_seat(self.config.dealer_seat - 1)
        else:
            self.dealer_position = self._next_playable_seat(self.dealer_position)

        self.heads_up = len([player for player in self.players if player.can_play]) == 2
        if self.heads_up:
            # Dealer posts the small blind heads-up.
            self.small_blind_position = self.dealer_position
            self.big_blind_position = self._next_playable_seat(self.dealer_position)
        else:
            self.small_blind_position = self._next_playable_seat(self.dealer_position)
            self.big_blind_position = self._next_playable_seat(self.small_blind_position)

    def _deal_hole_cards(self) -> None:
        seats = len(self.players)
        order = [
            (self.dealer_position + offset) % seats
            for offset in range(1, seats + 1)
            if self.players[(self.dealer_position + offset) % seats].can_play
        ]
        for seat_idx in order:
            self.players[seat_idx].is_dealt_in = True
        for _ in range(2):
            for seat_idx in order:
                card = self.deck.deal()
                if card is None:
                    raise StateError("DECK_EXHAUSTED", "Deck ran out while dealing hole cards")
                self.players[seat_idx].hole_cards.append(card)

    def _post_blinds(self) -> None:
        sb_player = self.small_blind
        bb_player = self.big_blind

        sb_amount = self._commit(sb_player, min(self.config.small_blind, sb_player.chip_balance), forced=True)
        self._record(sb_player, "posts small blind", sb_amount)
        bb_amount = self._commit(bb_player, min(self.config.big_blind, bb_player.chip_balance), forced=True)
        self._record(bb_player, "posts big blind", bb_amount)

        self.current_bet = max(sb_player.current_bet, bb_player.current_bet)
        self.min_raise = self.config.big_blind

    def abandon_hand(self) -> List[Dict[str, object]]:
        """End the current hand without a winner, returning every chip committed to it."""
        if not self.hand_in_progress:
            raise StateError("NO_HAND", "No hand in progress")
        self._events = []
        for player in self.players:
            if player.total_bet:
                player.add_chips(player.total_bet)
                player.total_bet = 0
                player.current_bet = 0
        self.pot = 0
        self._record(None, "hand abandoned")
        self._finish_hand()
        LOGGER.warning("Hand %s abandoned; bets refunded", self.hand_number)
        return self._drain_events()

    def _finish_hand(self) -> None:
        self.hand_in_progress = False
        self.current_player_index = None

    # Action handling -------------------------------------------------

    def call_amount(self) -> int:
        player = self._require_actor()
        return min(max(self.current_bet - player.current_bet, 0), player.chip_balance)

    def can_check(self) -> bool:
        player = self._require_actor()
        return player.current_bet == self.current_bet

    def minimum_raise_to(self) -> int:
        return self.current_bet + self.min_raise

    def legal_actions(self) -> LegalActions:
        """Legal moves for the player to act plus the helper amounts (call, raise bounds)."""
        player = self._require_actor()

        legal: List[ActionType] = [ActionType.FOLD]
        call_amount: Optional[int] = None
        if self.can_check():
            legal.append(ActionType.CHECK)
        else:
            legal.append(ActionType.CALL)
            call_amount = self.call_amount()

        min_to: Optional[int] = None
        max_to: Optional[int] = None
        stack_to = player.current_bet + player.chip_balance
        if self.current_bet == 0:
            legal.append(ActionType.BET)
            min_to = min(self.config.big_blind, player.chip_balance)
            max_to = player.chip_balance
        elif stack_to > self.current_bet:
            legal.append(ActionType.RAISE)
            min_to = min(self.minimum_raise_to(), stack_to)
            max_to = stack_to

        return LegalActions(legal=legal, call_amount=call_amount, min_raise_to=min_to, max_raise_to=max_to)

    def perform_action(
        self,
        action: Union[Action, ActionType, str],
        amount: Optional[int] = None,
        seat: Optional[int] = None,
    ) -> List[Dict[str, object]]:
        """Apply one action for the player to act and return the history entries it produced.

        ``action`` is either an action variant (``Raise(200)``) or its wire form
        (``"raise", 200``). Passing ``seat`` guards against acting out of turn.
        Nothing is mutated when the action is rejected.
        """
        if isinstance(action, (str, ActionType)):
            action = parse_action(action, amount)
        elif amount is not None:
            raise ValidationError("UNEXPECTED_AMOUNT", "Amount is carried by the action itself")

        player = self._require_actor()
        if seat is not None and seat != self.current_player_index:
            raise StateError("OUT_OF_TURN", f"Seat {seat} acted out of turn; waiting on seat {self.current_player_index}")

        self._events = []
        if isinstance(action, Fold):
            player.fold()
            self._record(player, "folds")
        elif isinstance(action, Check):
            if not self.can_check():
                raise ValidationError("CANNOT_CHECK", "Cannot check when there is a bet to call")
            player.check()
            self._record(player, "checks")
        elif isinstance(action, Call):
            to_call = self.call_amount()
            if to_call > 0:
                self._commit(player, to_call)
                self._record(player, "calls", to_call)
            else:
                player.check()
                self._record(player, "checks")
        elif isinstance(action, Bet):
            self._apply_bet(player, action.amount)
        elif isinstance(action, Raise):
            self._apply_raise(player, action.amount)
        else:
            raise ValidationError("UNKNOWN_ACTION", f"Unsupported action {action!r}")

        LOGGER.debug("Seat %s: %s", self.current_player_index, self._events[-1].action)
        self._after_action()
        return self._drain_events()

    def _apply_bet(self, player: Player, amount: int) -> None:
        if self.current_bet > 0:
            raise ValidationError("CANNOT_BET", "Cannot bet when there is already a bet; use raise instead")
        if amount > player.chip_balance:
            raise ValidationError("INSUFFICIENT_CHIPS", f"Bet of {amount} exceeds balance of {player.chip_balance}")
        # All-in for less than the big blind is the only short bet allowed.
        if amount < self.config.big_blind and amount != player.chip_balance:
            raise ValidationError("BET_TOO_SMALL", f"Bet must be at least the big blind ({self.config.big_blind})")

        self._commit(player, amount)
        self.current_bet = player.current_bet
        self.min_raise = self.config.big_blind
        self._reopen_action(player)
        self._record(player, "bets", amount)

    def _apply_raise(self, player: Player, amount: int) -> None:
        if self.current_bet == 0:
            raise ValidationError("CANNOT_RAISE", "Nothing to raise; use bet instead")
        stack_to = player.current_bet + player.chip_balance
        target = min(amount, stack_to)
        if target <= self.current_bet:
            raise ValidationError("RAISE_TOO_SMALL", "Raise must exceed the current bet")
        min_to = self.minimum_raise_to()
        if target < min_to and target != stack_to:
            raise ValidationError("RAISE_TOO_SMALL", f"Raise must be to at least {min_to}")

        self._commit(player, target - player.current_bet)
        increment = target - self.current_bet
        if increment >= self.min_raise:
            self.min_raise = increment
        self.current_bet = target
        self._reopen_action(player)
        self._record(player, "raises to", target)

    def _reopen_action(self, aggressor: Player) -> None:
        for other in self.players:
            if other is not aggressor and other.in_hand and not other.is_all_in:
                other.has_acted = False

    def _commit(self, player: Player, amount: int, forced: bool = False) -> int:
        # Chips leave the balance and land in the pot in the same step.
        moved = player.place_bet(amount, forced=forced)
        self.pot += moved
        return moved

    def _require_actor(self) -> Player:
        if not self.hand_in_progress:
            raise StateError("NO_HAND", "No hand in progress")
        player = self.current_player
        if player is None:
            raise StateError("NO_ACTOR", "No player can act")
        return player

    # Round transitions -----------------------------------------------

    def _after_action(self) -> None:
        if self._check_for_early_win():
            return
        assert self.current_player_index is not None
        self.current_player_index = self._first_actor_from(self.current_player_index + 1)
        self._settle_rounds()

    def _settle_rounds(self) -> None:
        # Keeps dealing while nobody is left to bet (all-in run-outs).
        while self.hand_in_progress and self._is_betting_round_complete():
            self._advance_to_next_round()

    def _is_betting_round_complete(self) -> bool:
        actors = [player for player in self.players if player.can_act]
        waiting = [player for player in actors if not player.has_acted or player.current_bet != self.current_bet]
        if not waiting:
            return True
        # A lone player with chips has nobody left to bet against once matched.
        return len(actors) == 1 and actors[0].current_bet >= self.current_bet

    def _advance_to_next_round(self) -> None:
        for player in self.players:
            player.reset_for_round()
        self.current_bet = 0

        if self.current_round == Round.PRE_FLOP:
            self.current_round = Round.FLOP
            self.community_cards.extend(self.deck.deal_multiple(3))
            self._record(None, "deals the flop")
        elif self.current_round == Round.FLOP:
            self.current_round = Round.TURN
            self.community_cards.extend(self.deck.deal_multiple(1))
            self._record(None, "deals the turn")
        elif self.current_round == Round.TURN:
            self.current_round = Round.RIVER
            self.community_cards.extend(self.deck.deal_multiple(1))
            self._record(None, "deals the river")
        else:
            self.current_round = Round.SHOWDOWN
            self._resolve_showdown()
            return

        LOGGER.debug(
            "Hand %s: %s [%s]",
            self.hand_number,
            self.current_round.display_name,
            " ".join(card.label for card in self.community_cards),
        )
        # Heads-up the big blind acts first after the flop, not the button.
        # Keep it this way: the button acts last on every street but the first.
        first = self.big_blind_position if self.heads_up else self.small_blind_position
        self.current_player_index = self._first_actor_from(first)

    def _check_for_early_win(self) -> bool:
        remaining = self.players_in_hand()
        if len(remaining) != 1:
            return False

        winner_idx = remaining[0]
        amount = self.pot
        self.players[winner_idx].add_chips(amount)
        self.winners = [winner_idx]
        self.payouts = {winner_idx: amount}
        self.pot = 0
        self._record(self.players[winner_idx], "wins the pot (all others folded)", amount)
        self._finish_hand()
        LOGGER.info("Hand %s: seat %s wins %s uncontested", self.hand_number, winner_idx, amount)
        return True

    # Showdown --------------------------------------------------------

    def _resolve_showdown(self) -> None:
        hands = {idx: self.players[idx].hole_cards + self.community_cards for idx in self.players_in_hand()}
        winners, evaluations = rank_hands(hands)
        self.evaluations = evaluations
        for seat_idx, evaluation in evaluations.items():
            player = self.players[seat_idx]
            player.hand_evaluation = evaluation
            self._record(player, f"shows {evaluation.display_name}")

        self.winners = winners
        if len(winners) == 1:
            winner = self.players[winners[0]]
            self._record(winner, f"wins the pot with {evaluations[winners[0]].display_name}", self.pot)
        else:
            names = ", ".join(self.players[idx].username for idx in winners)
            self._record(None, f"{names} tie and split the pot", self.pot)

        self._distribute_pot()
        self._finish_hand()
        LOGGER.info("Hand %s showdown: winners=%s payouts=%s", self.hand_number, winners, self.payouts)

    def _distribute_pot(self) -> None:
        # Single pot: all-in players share in every chip, there are no side pots.
        if not self.winners:
            return
        share, remainder = divmod(self.pot, len(self.winners))
        for idx, seat_idx in enumerate(self.winners):
            payout = share + (1 if idx < remainder else 0)
            self.players[seat_idx].add_chips(payout)
            self.payouts[seat_idx] = payout
        self.pot = 0

    def showdown_results(self) -> Dict[int, HandEvaluation]:
        if self.current_round != Round.SHOWDOWN or self.hand_in_progress:
            raise StateError("NO_SHOWDOWN", "Showdown results are only available once the river completes")
        return dict(self.evaluations)

    # History & snapshots ---------------------------------------------

    def _record(self, player: Optional[Player], action: str, amount: Optional[int] = None) -> None:
        record = ActionRecord(
            player=player.username if player else None,
            action=action,
            amount=amount,
            round=self.current_round.display_name,
        )
        self.action_history.append(record)
        self._events.append(record)

    def _drain_events(self) -> List[Dict[str, object]]:
        events = [record.to_dict() for record in self._events]
        self._events = []
        return events

    def snapshot(self, seat: Optional[int] = None) -> Dict[str, object]:
        """Serializable view of the whole table.

        With ``seat`` the view is a player's: other hole cards stay hidden
        until they are shown down.
        """
        showdown = self.current_round == Round.SHOWDOWN

        def reveal(idx: int) -> bool:
            if seat is None or idx == seat:
                return True
            return showdown and idx in self.evaluations

        payload: Dict[str, object] = {
            "hand_number": self.hand_number,
            "hand_in_progress": self.hand_in_progress,
            "current_round": self.current_round.value,
            "players": [
                dict(player.to_dict(reveal=reveal(idx)), seat=idx) for idx, player in enumerate(self.players)
            ],
            "community_cards": [card.label for card in self.community_cards],
            "pot": self.pot,
            "current_bet": self.current_bet,
            "min_raise": self.min_raise,
            "dealer_position": self.dealer_position,
            "small_blind_position": self.small_blind_position,
            "big_blind_position": self.big_blind_position,
            "current_player_index": self.current_player_index,
            "winners": list(self.winners),
            "payouts": {str(idx): amount for idx, amount in self.payouts.items()},
            "action_history": [record.to_dict() for record in self.action_history],
            "small_blind": self.config.small_blind,
            "big_blind": self.config.big_blind,
        }

        if self.hand_in_progress and self.current_player_index is not None and seat == self.current_player_index:
            legal = self.legal_actions()
            payload["legal"] = [action.value for action in legal.legal]
            payload["call_amount"] = legal.call_amount
            payload["min_raise_to"] = legal.min_raise_to
            payload["max_raise_to"] = legal.max_raise_to

        return payload
