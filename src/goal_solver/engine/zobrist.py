"""
Zobrist hashing for Goal game positions.

Zobrist hashing gives every position a 64-bit fingerprint for transposition
and lookup tables. A child position's hash can be derived from its parent's
by toggling only the keys of the facts that changed.

Implementation:
- Pre-generate random 63-bit keys for each (row, col, occupant), each turn
  value and each (score, team) pair
- Hash = XOR of the cell keys of all occupied cells, the turn key and one
  score key per team
- Incremental update: hash ^= old_key ^ new_key for every changed fact

Keys stay below 2**63, so every hash fits a signed 64-bit storage column.
"""

from dataclasses import dataclass

import numpy as np

from goal_solver.config import BOARD_CONFIG, SEARCH_CONFIG
from goal_solver.game.game import BLACK, EMPTY, RED

# Occupant index range: EMPTY, RED, BLACK
NUM_OCCUPANTS = 3


@dataclass(frozen=True, eq=False)
class ZobristKeys:
    """
    Immutable random key table, built once and shared read-only.

    Attributes:
        board: uint64 (rows, cols, occupants)
        turn: uint64 (occupants,), indexed by team
        points: uint64 (max_points + 1, occupants), indexed by [score, team]
    """
    board: np.ndarray
    turn: np.ndarray
    points: np.ndarray
    seed: int

    @classmethod
    def generate(
        cls,
        row_count: int = BOARD_CONFIG['row_count'],
        column_count: int = BOARD_CONFIG['column_count'],
        max_points: int = BOARD_CONFIG['max_points'],
        seed: int = SEARCH_CONFIG['zobrist_seed'],
    ) -> "ZobristKeys":
        # Seeded RNG so hashes are reproducible between runs
        rng = np.random.RandomState(seed)
        board = rng.randint(0, 2**63 - 1, size=(row_count, column_count, NUM_OCCUPANTS), dtype=np.uint64)
        turn = rng.randint(0, 2**63 - 1, size=NUM_OCCUPANTS, dtype=np.uint64)
        points = rng.randint(0, 2**63 - 1, size=(max_points + 1, NUM_OCCUPANTS), dtype=np.uint64)
        for array in (board, turn, points):
            array.setflags(write=False)
        return cls(board=board, turn=turn, points=points, seed=seed)

    @property
    def shape(self) -> tuple[int, int]:
        return self.board.shape[0], self.board.shape[1]


class ZobristHasher:
    """
    Zobrist hashing for Goal game positions.

    The hasher holds no state besides its key table, so one instance can be
    shared by any number of searches.
    """

    def __init__(self, keys: ZobristKeys):
        self.keys = keys

    @classmethod
    def from_seed(cls, seed: int = SEARCH_CONFIG['zobrist_seed'], **kwargs) -> "ZobristHasher":
        return cls(ZobristKeys.generate(seed=seed, **kwargs))

    def hash_position(self, position) -> int:
        """
        Compute the Zobrist hash of a position from scratch.

        Args:
            position: Position with grid, turn and scores

        Returns:
            Hash value (int, 0 <= h < 2**63)
        """
        grid = position.grid
        rows, cols = np.nonzero(grid != EMPTY)
        cell_keys = self.keys.board[rows, cols, grid[rows, cols]]
        hash_value = np.bitwise_xor.reduce(cell_keys) if len(cell_keys) else np.uint64(0)

        hash_value ^= self.keys.turn[position.turn]
        for team in (RED, BLACK):
            hash_value ^= self.keys.points[position.scores[team], team]

        return int(hash_value)

    def hash_transition(self, parent_hash: int, parent, child) -> int:
        """
        Derive a child's hash from its parent's by toggling changed facts.

        Only the cells that differ, the turn (if it changed) and the scores
        (if they changed) are touched.

        Args:
            parent_hash: Hash of `parent`
            parent: Position before the move
            child: Position after the move

        Returns:
            Hash of `child`, equal to hash_position(child)
        """
        hash_value = np.uint64(parent_hash)

        rows, cols = np.nonzero(parent.grid != child.grid)
        for row, col in zip(rows.tolist(), cols.tolist()):
            before = int(parent.grid[row, col])
            after = int(child.grid[row, col])
            if before != EMPTY:
                hash_value ^= self.keys.board[row, col, before]
            if after != EMPTY:
                hash_value ^= self.keys.board[row, col, after]

        if parent.turn != child.turn:
            hash_value ^= self.keys.turn[parent.turn]
            hash_value ^= self.keys.turn[child.turn]

        for team in (RED, BLACK):
            before = parent.scores[team]
            after = child.scores[team]
            if before != after:
                hash_value ^= self.keys.points[before, team]
                hash_value ^= self.keys.points[after, team]

        return int(hash_value)

    def verify_hash(self, position, claimed_hash: int) -> bool:
        """
        Check a claimed (e.g. incrementally maintained) hash.

        Useful for debugging incremental updates.
        """
        return self.hash_position(position) == claimed_hash
