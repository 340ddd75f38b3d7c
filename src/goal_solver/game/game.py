from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

# Cell occupants / team identifiers
EMPTY = 0
RED = 1
BLACK = 2
TEAMS = (RED, BLACK)

# Source coordinates of a move that places a piece from the unplaced pool
OFF_BOARD = -1


def opponent(team: int) -> int:
    """Returns the other team."""
    return BLACK if team == RED else RED


def team_name(team: Optional[int]) -> str:
    if team == RED:
        return "RED"
    if team == BLACK:
        return "BLACK"
    return "NONE"


class Move(NamedTuple):
    """
    A single move. Placements come from (OFF_BOARD, OFF_BOARD); moves into
    the goal have a destination row outside the board.
    """
    old_row: int
    old_col: int
    new_row: int
    new_col: int
    team: int

    @property
    def is_placement(self) -> bool:
        return self.old_row == OFF_BOARD and self.old_col == OFF_BOARD

    def __str__(self):
        return (f"{team_name(self.team)} ({self.old_row},{self.old_col})"
                f"->({self.new_row},{self.new_col})")


class RulesEngine(ABC):
    """
    Abstract Base Class for the rules the search engines play by.

    The engines never look inside a position beyond what these methods
    report, so any game with this interface and a `Position` state can be
    searched.
    """

    @abstractmethod
    def initial_position(self, points_to_win):
        """
        Returns the starting position of a game played to `points_to_win`.
        """
        pass

    @abstractmethod
    def legal_moves(self, turn, position):
        """
        Returns the legal moves for `turn` in `position`, in a fixed order.
        """
        pass

    @abstractmethod
    def apply_move(self, move, position):
        """
        Applies `move` to `position` in place, including the turn change.
        """
        pass

    @abstractmethod
    def is_game_over(self, position):
        """
        Returns True if no further play is possible.
        """
        pass

    @abstractmethod
    def winner(self, position):
        """
        Returns the winning team, or None if there is none (yet).
        """
        pass

    def is_legal(self, position, move):
        """
        Returns True if `move` is legal for the side to move in `position`.
        """
        return move in self.legal_moves(position.turn, position)
