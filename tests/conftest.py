"""
Shared pytest fixtures for goal_solver tests.

Position fixtures are function-scoped so tests can mutate them freely.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from goal_solver.engine.zobrist import ZobristHasher
from goal_solver.game import BLACK, RED, GoalGame, Position


def _make_position(cells=None, turn=RED, scores=None, unplaced=None, points_to_win=1,
                  row_count=4, column_count=3):
    """
    Build a position from {(row, col): team}.

    The pools default to whatever pieces are neither on the board nor scored.
    """
    cells = cells or {}
    scores = scores or {RED: 0, BLACK: 0}
    grid = np.zeros((row_count, column_count), dtype=np.int8)
    for (row, col), team in cells.items():
        grid[row, col] = team
    if unplaced is None:
        unplaced = {
            team: points_to_win - scores[team] - sum(1 for t in cells.values() if t == team)
            for team in (RED, BLACK)
        }
    return Position(grid, turn=turn, scores=scores, unplaced=unplaced, points_to_win=points_to_win)


@pytest.fixture
def rules():
    return GoalGame()


@pytest.fixture(scope="session")
def hasher():
    return ZobristHasher.from_seed(0)


@pytest.fixture
def initial_position(rules):
    return rules.initial_position(1)


@pytest.fixture
def win_in_three():
    """
    RED to move, wins at ply 3 whatever it plays.

    RED (1,1) can step to (0,1) or capture BLACK on (0,2); either way the
    piece reaches the far row and scores on RED's next turn.
    """
    return _make_position({(1, 1): RED, (0, 2): BLACK})


@pytest.fixture
def finished_position():
    return _make_position(scores={RED: 1, BLACK: 0})


@pytest.fixture
def make_position():
    return _make_position
