"""Main entry point for chessagon engine self-play."""

import argparse
import logging

from chessagon import Engine, TimeControl, configure_logging, load_config, match_engines

logger = logging.getLogger("chessagon.main")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chessagon engine self-play")
    parser.add_argument(
        "--depth",
        "-d",
        type=int,
        default=None,
        help="Maximum search depth (default: CHESSAGON_SEARCH_DEPTH or 3)",
    )
    parser.add_argument(
        "--time",
        "-t",
        type=float,
        default=None,
        help="Seconds per move for untimed games",
    )
    parser.add_argument(
        "--time-control",
        choices=["bullet", "blitz", "rapid"],
        default=None,
        help="Play on a clock with a preset time control",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Worker threads for the root search (default: 1)",
    )
    parser.add_argument(
        "--max-plies",
        type=int,
        default=400,
        help="Stop the game after this many plies (default: 400)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: CHESSAGON_LOG_LEVEL or INFO)",
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    config = load_config(max_depth=args.depth, time_limit=args.time, threads=args.threads)
    time_control = TimeControl.preset(args.time_control) if args.time_control else None

    white = Engine(config.search, eval_config=config.evaluation)
    black = Engine(config.search, eval_config=config.evaluation)
    game = match_engines(white, black, time_control=time_control, max_plies=args.max_plies)

    print(game.board.render())
    if game.result is None:
        print(f"No result after {len(game.moves)} plies")
    elif game.result.is_draw:
        print(f"Draw by {game.result.reason.value}")
    else:
        print(f"{game.result.winner} wins by {game.result.reason.value}")
    logger.info("Status code %d", game.status_code)
