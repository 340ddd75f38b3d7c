"""
Configuration for the Goal game search engines.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from goal_solver.exceptions import ConfigError


# Board Configuration
BOARD_CONFIG = {
    'row_count': 4,
    'column_count': 3,
    'max_points': 10,                   # Highest selectable score limit
}

# Minimax Configuration
SEARCH_CONFIG = {
    'points_to_win': 1,
    'zobrist_seed': 0,                  # Fixed seed keeps hashes stable across runs
    'max_depth': 20,                    # Session search cap
    'solved_max_depth': 80,             # Builder cap
    'session_depth_step': 1,
    'solved_depth_step': 2,             # Builder deepens two plies at a time
    'stability_iterations': 3,          # Iterations without new lookup entries before stopping
    'solved_alpha_beta': False,         # Builder searches exhaustively by default
    'heuristic': 'none',                # Session leaf evaluator: 'none' or 'material'
}

# MCTS Configuration
MCTS_CONFIG = {
    'C': 1.4,                           # ~sqrt(2)
    'num_searches': 2000,
    'rollout_limit': 0,                 # 0 = terminal check only
    'seed': 42,
}


HEURISTICS = ('none', 'material')


class SearchMode(Enum):
    """Which engine answers `find_best_move`."""
    SESSION_MINIMAX = 'session'
    SOLVED_GAME_MINIMAX = 'solved'
    MCTS = 'mcts'


# Paths Configuration
@dataclass
class PathConfig:
    lookup_db: str = "data/lookup_table.db"
    logs: str = "logs/goal_solver"

PATHS = PathConfig()


@dataclass
class SearchConfig:
    """
    Everything a caller chooses when asking for a move.

    Attributes:
        mode: Engine to use
        points_to_win: Score limit of the game being played
        rebuild: Solved-game mode only. True rebuilds the lookup table and
            persists it, False answers from the stored table read-only
        max_depth: Hard cap on iterative deepening (None = mode default)
        depth_step: Plies added per deepening iteration (None = mode default)
        stability_iterations: Solved-game stop criterion
        alpha_beta: Prune in the minimax search (None = mode default)
        num_searches: MCTS iterations per move
        exploration: UCB1 exploration constant
        rollout_limit: Random playout plies from an MCTS leaf
        seed: Seed for the MCTS rollout RNG
        zobrist_seed: Seed for the position hash keys
        db_path: SQLite file holding solved-game tables
        show_progress: Show tqdm bars while building
        heuristic: Session-mode leaf evaluator, 'none' scores cutoff leaves
            as draws, 'material' uses GoalGame.material
    """
    mode: SearchMode = SearchMode.SESSION_MINIMAX
    points_to_win: int = SEARCH_CONFIG['points_to_win']
    rebuild: bool = False
    max_depth: Optional[int] = None
    depth_step: Optional[int] = None
    stability_iterations: int = SEARCH_CONFIG['stability_iterations']
    alpha_beta: Optional[bool] = None
    num_searches: int = MCTS_CONFIG['num_searches']
    exploration: float = MCTS_CONFIG['C']
    rollout_limit: int = MCTS_CONFIG['rollout_limit']
    seed: int = MCTS_CONFIG['seed']
    zobrist_seed: int = SEARCH_CONFIG['zobrist_seed']
    db_path: str = field(default_factory=lambda: PATHS.lookup_db)
    show_progress: bool = False
    heuristic: str = SEARCH_CONFIG['heuristic']

    def __post_init__(self):
        if isinstance(self.mode, str):
            self.mode = SearchMode(self.mode)
        if not 1 <= self.points_to_win <= BOARD_CONFIG['max_points']:
            raise ConfigError(
                f"points_to_win must be in [1, {BOARD_CONFIG['max_points']}], "
                f"got {self.points_to_win}"
            )
        if self.max_depth is not None and self.max_depth < 1:
            raise ConfigError(f"max_depth must be positive, got {self.max_depth}")
        if self.depth_step is not None and self.depth_step < 1:
            raise ConfigError(f"depth_step must be positive, got {self.depth_step}")
        if self.stability_iterations < 1:
            raise ConfigError("stability_iterations must be positive")
        if self.num_searches < 1:
            raise ConfigError("num_searches must be positive")
        if self.heuristic not in HEURISTICS:
            raise ConfigError(f"heuristic must be one of {HEURISTICS}, got {self.heuristic!r}")

    @property
    def solved(self) -> bool:
        return self.mode == SearchMode.SOLVED_GAME_MINIMAX

    def effective_depth_step(self) -> int:
        if self.depth_step is not None:
            return self.depth_step
        if self.solved:
            return SEARCH_CONFIG['solved_depth_step']
        return SEARCH_CONFIG['session_depth_step']

    def effective_alpha_beta(self) -> bool:
        if self.alpha_beta is not None:
            return self.alpha_beta
        return not self.solved or SEARCH_CONFIG['solved_alpha_beta']

    def effective_max_depth(self) -> int:
        if self.max_depth is not None:
            return self.max_depth
        if self.solved:
            return SEARCH_CONFIG['solved_max_depth']
        return SEARCH_CONFIG['max_depth']
