import argparse
import logging
import random
import sys
from typing import List, Optional

from .bots import baseline_strategy
from .errors import PokerError
from .game import GameEngine
from .models import Player, TableConfig

LOGGER = logging.getLogger("holdem.sim")


def build_parser() -> argparse.ArgumentParser:
    # CLI doubles as documentation for the table settings.
    parser = argparse.ArgumentParser(description="Simulate Texas Hold'em hands between baseline bots")
    parser.add_argument("--players", type=int, default=4, help="Number of seats (2-23)")
    parser.add_argument("--hands", type=int, default=100, help="Maximum number of hands to play")
    parser.add_argument("--starting-stack", type=int, default=1_000)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None, help="Seed for deck shuffles and bot choices")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def simulate(engine: GameEngine, hands: int, seed: Optional[int] = None) -> int:
    """Play up to ``hands`` hands with baseline bots; returns the number played."""
    rng = random.Random(seed)
    played = 0
    for hand_idx in range(hands):
        if not engine.can_start_hand():
            LOGGER.info("Match over after %s hands", played)
            break
        engine.start_new_hand(seed=None if seed is None else seed + hand_idx)
        while engine.hand_in_progress:
            engine.perform_action(baseline_strategy(engine, rng))
        played += 1
    return played


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        config = TableConfig(small_blind=args.sb, big_blind=args.bb, starting_stack=args.starting_stack)
        players = [
            Player(user_id=f"bot-{idx}", username=f"Bot{idx}", chip_balance=config.starting_stack)
            for idx in range(args.players)
        ]
        engine = GameEngine(players, config)
        opening_total = engine.total_chips()
        played = simulate(engine, args.hands, args.seed)
    except PokerError as exc:
        LOGGER.error("%s: %s", exc.code, exc.message)
        return 1

    for player in engine.players:
        print(f"{player.username:>8} {player.chip_balance:>8}")
    print(f"hands played: {played}")
    if engine.total_chips() != opening_total:
        LOGGER.error("Chip total changed: %s -> %s", opening_total, engine.total_chips())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
