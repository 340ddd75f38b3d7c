#!/usr/bin/env python3
"""
Demo: one engine against another on the Goal board.

Usage: python scripts/play_goal.py --red session --black mcts --points-to-win 2
"""

import argparse
import logging

from goal_solver.config import HEURISTICS, PATHS, SearchConfig, SearchMode
from goal_solver.game import BLACK, RED, GoalGame, team_name
from goal_solver.log import setup_logging
from goal_solver.player import DecisionStatus, Player


def print_board(position):
    """Pretty print the Goal board, RED's goal above row 0."""
    symbols = {0: '.', RED: 'R', BLACK: 'B'}
    rows, cols = position.shape
    header = ' '.join(str(c) for c in range(cols))
    print(f"\n  {header}   RED goal")
    print("  " + "-" * (2 * cols - 1))
    for row in range(rows):
        print(f"{row}|" + ' '.join(symbols[int(cell)] for cell in position.grid[row]) + "|")
    print("  " + "-" * (2 * cols - 1) + "   BLACK goal")
    print(f"Score RED {position.scores[RED]} - BLACK {position.scores[BLACK]}, "
          f"pool RED {position.unplaced[RED]} BLACK {position.unplaced[BLACK]}")


def make_config(mode, args):
    return SearchConfig(
        mode=SearchMode(mode),
        points_to_win=args.points_to_win,
        rebuild=args.rebuild,
        num_searches=args.num_searches,
        db_path=args.db,
        heuristic=args.heuristic,
    )


def main():
    parser = argparse.ArgumentParser(description="Play the Goal game engine vs engine")
    parser.add_argument('--red', choices=[m.value for m in SearchMode], default='session')
    parser.add_argument('--black', choices=[m.value for m in SearchMode], default='mcts')
    parser.add_argument('--points-to-win', type=int, default=1)
    parser.add_argument('--num-searches', type=int, default=500)
    parser.add_argument('--rebuild', action='store_true', help='Rebuild lookup tables in solved mode')
    parser.add_argument('--db', default=PATHS.lookup_db)
    parser.add_argument('--heuristic', choices=HEURISTICS, default='none',
                        help='Leaf evaluator for session search')
    parser.add_argument('--max-moves', type=int, default=200)
    args = parser.parse_args()

    setup_logging(logging.WARNING)

    rules = GoalGame()
    players = {
        RED: Player(RED, make_config(args.red, args), rules=rules),
        BLACK: Player(BLACK, make_config(args.black, args), rules=rules),
    }

    print("=" * 40)
    print(f"Goal {rules.row_count}x{rules.column_count}: RED ({args.red}) vs BLACK ({args.black})")
    print(f"First to {args.points_to_win} point(s) wins")
    print("=" * 40)

    position = rules.initial_position(args.points_to_win)
    print_board(position)

    for _ in range(args.max_moves):
        if rules.is_game_over(position):
            break
        decision = players[position.turn].decide(position)
        if decision.move is None:
            print(f"{team_name(position.turn)} cannot move: {decision.status.value}")
            break
        note = "" if decision.status == DecisionStatus.OK else f" [{decision.status.value}]"
        print(f"\n{decision.move} via {decision.source.value}{note}")
        position = position.next_position(decision.move, rules)
        print_board(position)

    if rules.is_game_over(position):
        winner = rules.winner(position)
        print(f"\nGame over: {team_name(winner) + ' wins' if winner is not None else 'draw'}")
    else:
        print("\nMove limit reached")


if __name__ == "__main__":
    main()
