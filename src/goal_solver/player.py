"""
Move selection for one team: the entry point drivers call.

A Player wraps the engine chosen in its SearchConfig:
- session minimax: iterative deepening per move, transposition table kept
  for the Player's lifetime
- solved-game minimax: a lookup table of solved positions, either rebuilt
  (and persisted) by exhaustive search or read from the store
- MCTS: UCB1 tree search per move
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from goal_solver.config import SearchConfig, SearchMode
from goal_solver.engine.alphabeta import MinimaxEngine
from goal_solver.engine.transposition_table import DECISIVE_THRESHOLD, DRAW_SCORE, WIN_SCORE, is_decisive
from goal_solver.engine.zobrist import ZobristHasher
from goal_solver.exceptions import IllegalMoveError, StorageUnavailableError
from goal_solver.game.game import Move, opponent, team_name
from goal_solver.game.goal_game import GoalGame
from goal_solver.mcts.mcts import MCTS
from goal_solver.storage.lookup_store import LookupStore, StoredPlay

logger = logging.getLogger(__name__)


class DecisionStatus(Enum):
    OK = 'ok'
    NO_LEGAL_MOVE = 'no_legal_move'
    TABLE_UNAVAILABLE = 'table_unavailable'  # Store missing or broken, rebuild required
    NOT_IN_TABLE = 'not_in_table'            # Position not solved, move comes from a fallback search


class DecisionSource(Enum):
    NONE = 'none'
    ONLY_MOVE = 'only_move'
    SEARCH = 'search'
    LOOKUP = 'lookup'
    MCTS = 'mcts'


@dataclass
class Decision:
    """
    Outcome of asking a Player for a move.

    Attributes:
        move: Chosen move, None when there is none to play
        score: Score from the Player's team perspective, if the engine gives one
        status: Why the move is (or is not) there
        source: Which mechanism produced the move
    """
    move: Optional[Move]
    score: Optional[float]
    status: DecisionStatus
    source: DecisionSource

    @property
    def ok(self) -> bool:
        return self.status == DecisionStatus.OK


class MoveHint(NamedTuple):
    """
    What the solved table says about one legal move.

    `score` is from the Player's team perspective, `plies_to_end` counts the
    plies until the game ends under best play. Both are None when the table
    does not cover the move.
    """
    move: Move
    score: Optional[float]
    plies_to_end: Optional[int]
    is_best: bool


class Player:
    """
    Engine-backed player for one team.
    """

    def __init__(self, team, config=None, rules=None, store=None, hasher=None):
        self.team = team
        self.config = config if config is not None else SearchConfig()
        self.rules = rules if rules is not None else GoalGame()
        self.hasher = hasher if hasher is not None else ZobristHasher.from_seed(self.config.zobrist_seed)
        self.store = store
        self.mcts = None
        self.session_engine = None
        self.solved_engine = None

    def _store(self) -> LookupStore:
        if self.store is None:
            self.store = LookupStore(self.config.db_path)
        return self.store

    def _session(self) -> MinimaxEngine:
        if self.session_engine is None:
            session_config = SearchConfig(
                mode=SearchMode.SESSION_MINIMAX,
                points_to_win=self.config.points_to_win,
                max_depth=None if self.config.solved else self.config.max_depth,
                zobrist_seed=self.config.zobrist_seed,
                heuristic=self.config.heuristic,
            )
            self.session_engine = MinimaxEngine.from_config(self.rules, self.team, session_config, self.hasher)
        return self.session_engine

    def decide(self, position) -> Decision:
        """
        Choose a move for the side to move in `position`.

        Returns:
            Decision; `move` is None for NO_LEGAL_MOVE and TABLE_UNAVAILABLE
        """
        moves = self.rules.legal_moves(position.turn, position)
        if self.rules.is_game_over(position) or not moves:
            return Decision(None, None, DecisionStatus.NO_LEGAL_MOVE, DecisionSource.NONE)

        # A forced move needs no search and no table
        if len(moves) == 1:
            return Decision(moves[0], None, DecisionStatus.OK, DecisionSource.ONLY_MOVE)

        if self.config.mode == SearchMode.MCTS:
            decision = self._decide_mcts(position)
        elif self.config.mode == SearchMode.SOLVED_GAME_MINIMAX:
            decision = self._decide_solved(position)
        else:
            decision = self._decide_search(position, self._session())

        if decision.move is not None and not self.rules.is_legal(position, decision.move):
            raise IllegalMoveError(f"Engine chose illegal move {decision.move} ({decision.source.value})")
        return decision

    def _decide_search(self, position, engine, status=DecisionStatus.OK) -> Decision:
        result = engine.search(position)
        if not result.has_move:
            return Decision(None, None, DecisionStatus.NO_LEGAL_MOVE, DecisionSource.NONE)
        return Decision(result.best_move, result.score, status, DecisionSource.SEARCH)

    def _decide_mcts(self, position) -> Decision:
        if self.mcts is None:
            self.mcts = MCTS.from_config(self.rules, self.config, self.hasher)
        result = self.mcts.search(position)
        if not result.has_move:
            return Decision(None, None, DecisionStatus.NO_LEGAL_MOVE, DecisionSource.NONE)
        return Decision(result.best_move, None, DecisionStatus.OK, DecisionSource.MCTS)

    def _decide_solved(self, position) -> Decision:
        try:
            entry = self._table_entry(position)
        except StorageUnavailableError as e:
            logger.error("Lookup table unavailable, it has to be rebuilt: %s", e)
            return Decision(None, None, DecisionStatus.TABLE_UNAVAILABLE, DecisionSource.NONE)
        if entry is not None:
            move, score = entry
            return Decision(move, score, DecisionStatus.OK, DecisionSource.LOOKUP)

        logger.warning("Position not in the lookup table, falling back to search")
        return self._decide_search(position, self._session(), status=DecisionStatus.NOT_IN_TABLE)

    def _table_entry(self, position) -> Optional[tuple[Move, float]]:
        """
        Solved (move, score) for `position`, score from this Player's team
        perspective, or None if the table does not hold it.

        A rebuilding solved-game Player answers from its in-memory table
        (building it first), any other Player reads the store.

        Raises:
            StorageUnavailableError: The store cannot be read
        """
        zobrist_hash = self.hasher.hash_position(position)
        if self.config.solved and self.config.rebuild:
            if self.solved_engine is None:
                self.build_lookup_table(self.rules.initial_position(self.config.points_to_win))
            record = self.solved_engine.policy.lookup_table.get(zobrist_hash)
            if record is None or record.move is None:
                return None
            return record.move, record.score

        play = self._store().query(self.config.points_to_win, zobrist_hash)
        if play is None:
            return None
        return play.move, (play.score if play.move.team == self.team else -play.score)

    def move_hints(self, position) -> list[MoveHint]:
        """
        Score every legal move of the side to move from the solved table.

        A move's score is its child's solved score one ply further away;
        a move that ends the game scores as a win, loss or draw at one ply.
        The best move is the one stored for `position`, or failing that the
        best known score for the side to move.

        Raises:
            StorageUnavailableError: The store cannot be read
        """
        if self.rules.is_game_over(position):
            return []

        scored = []
        for move in self.rules.legal_moves(position.turn, position):
            child = position.next_position(move, self.rules)
            if self.rules.is_game_over(child):
                winner = self.rules.winner(child)
                if winner is None:
                    scored.append((move, DRAW_SCORE, 1))
                else:
                    scored.append((move, WIN_SCORE - 1 if winner == self.team else -(WIN_SCORE - 1), 1))
                continue

            entry = self._table_entry(child)
            if entry is None:
                scored.append((move, None, None))
                continue
            score = entry[1]
            # One ply further from the end
            if score > 0:
                score -= 1
            elif score < 0:
                score += 1
            scored.append((move, score, WIN_SCORE - abs(score) if is_decisive(score) else None))

        entry = self._table_entry(position)
        best_move = entry[0] if entry is not None else None
        if best_move is None:
            known = [(move, score) for move, score, _ in scored if score is not None]
            if known:
                pick = max if position.turn == self.team else min
                best_move = pick(known, key=lambda item: item[1])[0]

        return [MoveHint(move, score, plies, move == best_move) for move, score, plies in scored]

    def build_lookup_table(self, position) -> int:
        """
        Solve the game from `position` and persist the lookup table.

        The in-memory table stays usable if persisting fails.

        Returns:
            Number of solved positions
        """
        logger.info("Rebuilding lookup table for points_to_win=%d. This will take some time.",
                    self.config.points_to_win)
        start_time = time.time()
        self.solved_engine = MinimaxEngine.from_config(self.rules, self.team, self.config, self.hasher)
        result = self.solved_engine.search(position)
        lookup_table = self.solved_engine.policy.lookup_table
        logger.info("Lookup table built: %d solved positions, depth %d, %.1fs",
                    len(lookup_table), result.depth_reached, time.time() - start_time)

        if result.score >= DECISIVE_THRESHOLD:
            logger.info("%s has the winning strategy", team_name(self.team))
        elif result.score <= -DECISIVE_THRESHOLD:
            logger.info("%s has the winning strategy", team_name(opponent(self.team)))
        else:
            logger.info("No winning strategy found for either team")

        plays = [
            StoredPlay(zobrist_hash, record.move,
                       int(record.score if record.move.team == self.team else -record.score))
            for zobrist_hash, record in lookup_table.items()
            if record.move is not None
        ]
        try:
            self._store().flush(self.config.points_to_win, plays, show_progress=self.config.show_progress)
        except StorageUnavailableError as e:
            logger.error("Lookup table could not be persisted: %s", e)
        return len(lookup_table)


def find_best_move(position, team, config=None, rules=None, store=None) -> Optional[Move]:
    """
    Best move for `team` in `position`, or None if there is none to play
    (or the solved-game table is unavailable).
    """
    return Player(team, config, rules=rules, store=store).decide(position).move
