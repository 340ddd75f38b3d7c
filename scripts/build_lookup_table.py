#!/usr/bin/env python3
"""
Solve the Goal game for a score limit and persist the lookup table.

Usage: python scripts/build_lookup_table.py --points-to-win 1 --db data/lookup_table.db
"""

import argparse
import logging
import sys

from goal_solver.config import PATHS, SEARCH_CONFIG, SearchConfig, SearchMode
from goal_solver.exceptions import StorageUnavailableError
from goal_solver.game import RED, GoalGame, team_name
from goal_solver.log import setup_logging
from goal_solver.player import Player
from goal_solver.storage import LookupStore

logger = logging.getLogger("build_lookup_table")


def main():
    parser = argparse.ArgumentParser(description="Build the solved-game lookup table")
    parser.add_argument('--points-to-win', type=int, default=SEARCH_CONFIG['points_to_win'])
    parser.add_argument('--db', default=PATHS.lookup_db, help='SQLite file to write')
    parser.add_argument('--max-depth', type=int, default=None)
    parser.add_argument('--depth-step', type=int, default=None)
    parser.add_argument('--stability', type=int, default=SEARCH_CONFIG['stability_iterations'],
                        help='Quiet iterations before the build stops')
    parser.add_argument('--alpha-beta', action='store_true', help='Prune while building')
    parser.add_argument('--log-dir', default=PATHS.logs)
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_dir)

    config = SearchConfig(
        mode=SearchMode.SOLVED_GAME_MINIMAX,
        points_to_win=args.points_to_win,
        rebuild=True,
        max_depth=args.max_depth,
        depth_step=args.depth_step,
        stability_iterations=args.stability,
        alpha_beta=True if args.alpha_beta else None,
        db_path=args.db,
        show_progress=True,
    )
    rules = GoalGame()
    with LookupStore(config.db_path) as store:
        player = Player(RED, config, rules=rules, store=store)
        solved = player.build_lookup_table(rules.initial_position(config.points_to_win))
        try:
            stored = store.count(config.points_to_win)
        except StorageUnavailableError as e:
            logger.error("Lookup table was not persisted: %s", e)
            return 1

    print(f"\nSolved positions: {solved:,}")
    print(f"Stored plays:     {stored:,} ({config.db_path}, points_to_win={config.points_to_win})")
    print(f"Built from the perspective of {team_name(RED)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
