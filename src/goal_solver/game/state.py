"""
Game position value object.

A position is everything needed to resume search: the occupancy grid, the
side to move, both scores, both unplaced-piece pools, and the move that
produced it. Successor positions are always full copies, so any number of
search branches can replay the same parent independently.
"""

from typing import Optional

import numpy as np

from goal_solver.game.game import BLACK, EMPTY, RED, Move


class Position:
    """
    Board position for the Goal game.

    Attributes:
        grid: int8 array (rows, cols) holding EMPTY, RED or BLACK
        turn: Team to move
        scores: {RED: points, BLACK: points}
        unplaced: {RED: pieces in pool, BLACK: pieces in pool}
        points_to_win: Score limit of this game
        move: Move that produced this position (None at the root)
    """

    __slots__ = ('grid', 'turn', 'scores', 'unplaced', 'points_to_win', 'move')

    def __init__(
        self,
        grid: np.ndarray,
        turn: int = RED,
        scores: Optional[dict] = None,
        unplaced: Optional[dict] = None,
        points_to_win: int = 1,
        move: Optional[Move] = None,
    ):
        self.grid = np.asarray(grid, dtype=np.int8)
        self.turn = turn
        self.scores = dict(scores) if scores is not None else {RED: 0, BLACK: 0}
        if unplaced is None:
            unplaced = {RED: points_to_win, BLACK: points_to_win}
        self.unplaced = dict(unplaced)
        self.points_to_win = points_to_win
        self.move = move

    @classmethod
    def empty(cls, row_count: int, column_count: int, points_to_win: int) -> "Position":
        grid = np.full((row_count, column_count), EMPTY, dtype=np.int8)
        return cls(grid, turn=RED, points_to_win=points_to_win)

    @property
    def shape(self) -> tuple[int, int]:
        return self.grid.shape

    def copy(self) -> "Position":
        return Position(
            self.grid.copy(),
            turn=self.turn,
            scores=self.scores,
            unplaced=self.unplaced,
            points_to_win=self.points_to_win,
            move=self.move,
        )

    def next_position(self, move: Move, rules) -> "Position":
        """Returns a new position with `move` applied; self is untouched."""
        child = self.copy()
        rules.apply_move(move, child)
        child.move = move
        return child

    def score(self, team: int) -> int:
        return self.scores[team]

    def pieces(self, team: int) -> list[tuple[int, int]]:
        """(row, col) of every piece of `team` on the board, row-major."""
        rows, cols = np.nonzero(self.grid == team)
        return list(zip(rows.tolist(), cols.tolist()))

    def __eq__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return (
            self.turn == other.turn
            and self.scores == other.scores
            and np.array_equal(self.grid, other.grid)
        )

    def __hash__(self):
        return hash((self.turn, self.scores[RED], self.scores[BLACK], self.grid.tobytes()))

    def __repr__(self):
        return (f"Position(turn={self.turn}, scores={self.scores}, "
                f"unplaced={self.unplaced}, grid={self.grid.tolist()})")

    def render(self) -> str:
        symbols = {EMPTY: '.', RED: 'R', BLACK: 'B'}
        lines = [''.join(symbols[int(cell)] for cell in row) for row in self.grid]
        lines.append(f"R:{self.scores[RED]} B:{self.scores[BLACK]} "
                     f"turn={'R' if self.turn == RED else 'B'}")
        return '\n'.join(lines)
