"""
Search engines for the Goal game: session minimax, solved-game lookup
tables and MCTS behind one `find_best_move` entry point.
"""

from goal_solver.config import SearchConfig, SearchMode
from goal_solver.exceptions import ConfigError, GoalSolverError, IllegalMoveError, StorageUnavailableError
from goal_solver.game import BLACK, RED, GoalGame, Move, Position
from goal_solver.player import Decision, DecisionSource, DecisionStatus, MoveHint, Player, find_best_move

__version__ = "0.1"

__all__ = [
    'SearchConfig',
    'SearchMode',
    'ConfigError',
    'GoalSolverError',
    'IllegalMoveError',
    'StorageUnavailableError',
    'RED',
    'BLACK',
    'GoalGame',
    'Move',
    'Position',
    'Decision',
    'DecisionSource',
    'DecisionStatus',
    'MoveHint',
    'Player',
    'find_best_move',
]
