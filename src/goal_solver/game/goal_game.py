from goal_solver.config import BOARD_CONFIG
from goal_solver.game.game import BLACK, EMPTY, OFF_BOARD, RED, Move, RulesEngine, opponent
from goal_solver.game.state import Position


class GoalGame(RulesEngine):
    """
    The Goal game: a race to push pieces through the opponent's side.

    Board: 4 rows x 3 columns
    RED enters on the bottom row and advances upward, BLACK enters on the
    top row and advances downward.
    Moves:
    - Place a piece from the pool on an empty cell of the home row
    - Step straight forward onto an empty cell
    - Step diagonally forward onto an opposing piece, capturing it back into
      its owner's pool
    - Step from the far row into the goal, scoring a point (the piece leaves
      the game)
    A side with no legal move passes. The first team to `points_to_win`
    wins; if neither side can move, the higher score wins.
    """

    def __init__(self, row_count=BOARD_CONFIG['row_count'], column_count=BOARD_CONFIG['column_count']):
        self.row_count = row_count
        self.column_count = column_count

    def __repr__(self):
        return f"GoalGame({self.row_count}x{self.column_count})"

    def home_row(self, team):
        return self.row_count - 1 if team == RED else 0

    def direction(self, team):
        return -1 if team == RED else 1

    def on_board(self, row, col=0):
        return 0 <= row < self.row_count and 0 <= col < self.column_count

    def initial_position(self, points_to_win):
        return Position.empty(self.row_count, self.column_count, points_to_win)

    def legal_moves(self, turn, position):
        """
        Returns moves for `turn`: placements left to right, then each piece's
        moves in row-major order (straight step or goal, then captures).
        """
        grid = position.grid
        enemy = opponent(turn)
        moves = []

        if position.unplaced[turn] > 0:
            home = self.home_row(turn)
            for col in range(self.column_count):
                if grid[home, col] == EMPTY:
                    moves.append(Move(OFF_BOARD, OFF_BOARD, home, col, turn))

        step = self.direction(turn)
        for row, col in position.pieces(turn):
            target = row + step
            if not self.on_board(target):
                # Far row: the only way forward is into the goal
                moves.append(Move(row, col, target, col, turn))
                continue
            if grid[target, col] == EMPTY:
                moves.append(Move(row, col, target, col, turn))
            for side in (-1, 1):
                c = col + side
                if self.on_board(target, c) and grid[target, c] == enemy:
                    moves.append(Move(row, col, target, c, turn))

        return moves

    def apply_move(self, move, position):
        """
        Apply `move` in place and hand the turn over. The mover keeps the
        turn only when the opponent is stuck and the mover is not.
        """
        team = move.team
        enemy = opponent(team)
        grid = position.grid

        if move.is_placement:
            if position.unplaced[team] <= 0:
                raise ValueError(f"{move}: no unplaced pieces left")
            position.unplaced[team] -= 1
        else:
            grid[move.old_row, move.old_col] = EMPTY

        if self.on_board(move.new_row, move.new_col):
            if grid[move.new_row, move.new_col] == enemy:
                position.unplaced[enemy] += 1
            grid[move.new_row, move.new_col] = team
        else:
            position.scores[team] += 1

        position.move = move
        if self.legal_moves(enemy, position) or not self.legal_moves(team, position):
            position.turn = enemy
        else:
            position.turn = team

    def material(self, position, team):
        """
        Static evaluation of `position` from `team`'s perspective.

        Scored for the side to move, then negated if that is not `team`:
        - 2 per legal move
        - 2 per head-on pair (a BLACK piece directly in front of a RED one)
        - Win cycle in the middle column, three cells ending on the far row:
          +20 for the middle cell plus a neighbour, +100 more for all three.
          Counts for the side that owns it, against the other side
        """
        turn = position.turn
        score = 2 * len(self.legal_moves(turn, position))

        grid = position.grid
        for row, col in position.pieces(RED):
            if row > 0 and grid[row - 1, col] == BLACK:
                score += 2

        lane = self.column_count // 2
        for side in (RED, BLACK):
            far = self.home_row(opponent(side))
            step = self.direction(side)
            top, mid, bot = (self.on_board(r) and grid[r, lane] == side
                             for r in (far, far - step, far - 2 * step))
            bonus = 0
            if mid and (top or bot):
                bonus += 20
            if top and mid and bot:
                bonus += 100
            score += bonus if turn == side else -bonus

        return score if turn == team else -score

    def _stuck(self, position):
        return not self.legal_moves(RED, position) and not self.legal_moves(BLACK, position)

    def is_game_over(self, position):
        if any(position.scores[team] >= position.points_to_win for team in (RED, BLACK)):
            return True
        return self._stuck(position)

    def winner(self, position):
        for team in (RED, BLACK):
            if position.scores[team] >= position.points_to_win:
                return team
        if self._stuck(position):
            if position.scores[RED] > position.scores[BLACK]:
                return RED
            if position.scores[BLACK] > position.scores[RED]:
                return BLACK
        return None
