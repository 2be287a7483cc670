import argparse
import random
import sys
import time
from collections import Counter

import numpy as np
from loguru import logger

from ludo_table.board import GRID_SIZE, occupancy_grid
from ludo_table.controller import TurnController
from ludo_table.scheduler import VirtualScheduler
from ludo_table.types import Color, Difficulty, GameMode

_GLYPHS = {Color.RED: "R", Color.GREEN: "G", Color.YELLOW: "Y", Color.BLUE: "B"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate machine-only Ludo games")
    parser.add_argument("--players", type=int, choices=(2, 3, 4), default=4)
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument(
        "--difficulty",
        type=str,
        choices=[d.value for d in Difficulty],
        default=Difficulty.MEDIUM.value,
    )
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--max-callbacks",
        type=int,
        default=200_000,
        help="Safety cap on scheduled callbacks per game",
    )
    parser.add_argument("--show-board", action="store_true")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args(argv)


def render_board(grid: np.ndarray) -> str:
    """Text board: one glyph per occupied cell, digit when stacked."""
    rows = []
    for r in range(GRID_SIZE):
        cells = []
        for c in range(GRID_SIZE):
            counts = grid[:, r, c]
            total = int(counts.sum())
            if total == 0:
                cells.append(".")
            elif total == 1:
                cells.append(_GLYPHS[Color(int(np.argmax(counts)))])
            else:
                cells.append(str(min(total, 9)))
        rows.append(" ".join(cells))
    return "\n".join(rows)


def play_game(
    player_count: int,
    difficulty: Difficulty,
    rng: random.Random,
    max_callbacks: int,
) -> TurnController:
    scheduler = VirtualScheduler()
    controller = TurnController(scheduler, rng=rng, clock=lambda: scheduler.now_ms)
    controller.initialize(
        player_count, GameMode.VS_MACHINE, difficulty, human_seats=()
    )
    scheduler.run_until_idle(
        max_callbacks=max_callbacks, until=lambda: controller.state.game_over
    )
    return controller


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    rng = random.Random(args.seed)
    difficulty = Difficulty(args.difficulty)
    wins: Counter = Counter()
    move_counts = []
    start_time = time.time()

    for game_idx in range(1, args.games + 1):
        controller = play_game(args.players, difficulty, rng, args.max_callbacks)
        state = controller.state
        move_counts.append(len(state.move_log))
        if not state.game_over:
            logger.warning(f"Game {game_idx} hit the callback cap without a winner")
            continue
        wins[state.winner.color] += 1
        ranking = ", ".join(
            f"{p.color.label}({p.finished_tokens})" for p in state.ranking
        )
        logger.info(
            f"Game {game_idx}: {state.winner.color.label} wins after "
            f"{len(state.move_log)} moves | {ranking}"
        )
        if args.show_board:
            logger.info("\n" + render_board(occupancy_grid(state.players)))

    elapsed = time.time() - start_time
    logger.info("=" * 40)
    logger.info(f"Played {args.games} game(s) in {elapsed:.2f}s")
    if move_counts:
        logger.info(f"Average moves per game: {sum(move_counts) / len(move_counts):.1f}")
    for color, count in sorted(wins.items()):
        logger.info(f"{color.label:<7} {count:>4} wins")


if __name__ == "__main__":
    main()
