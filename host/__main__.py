import argparse
import asyncio
import logging

from holdem import TableConfig
from .server import HostServer

logging.basicConfig(level=logging.INFO)


def main() -> None:
    # CLI doubles as documentation for the common table toggles.
    parser = argparse.ArgumentParser(description="Texas Hold'em table host")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--seats", type=int, default=9)
    parser.add_argument("--starting-stack", type=int, default=1_000)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument(
        "--move-time",
        type=int,
        default=0,
        help="Idle time in milliseconds before a player is auto-folded (0 disables)",
    )
    parser.add_argument(
        "--next-hand-delay-ms",
        type=int,
        default=8_000,
        help="Pause after a showdown before the next hand is dealt",
    )
    parser.add_argument(
        "--fold-win-delay-ms",
        type=int,
        default=4_000,
        help="Pause after a hand won by folds before the next hand is dealt",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed the shuffle for reproducible games")
    args = parser.parse_args()

    config = TableConfig(
        seats=args.seats,
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        move_time_ms=args.move_time,
        next_hand_delay_ms=args.next_hand_delay_ms,
        fold_win_delay_ms=args.fold_win_delay_ms,
    )

    server = HostServer(config, seed=args.seed)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
