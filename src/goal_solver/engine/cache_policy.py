"""
Caching strategies for the minimax engine.

The engine runs the same search loop in both deployments; what differs is
where results are cached, which cached results may answer a query, and when
iterative deepening stops:

- SessionCachePolicy: one transposition table, stop at the first decisive
  root score.
- SolvedGameCachePolicy: solved records go to a permanent lookup table (the
  one that gets persisted), everything else to a depth-guarded
  transposition table; stop once further iterations stop adding solved
  positions or discovering new ones.
"""

from abc import ABC, abstractmethod
from typing import Optional

from goal_solver.config import SEARCH_CONFIG
from goal_solver.engine.transposition_table import (
    LookupTable,
    PlayRecord,
    TranspositionTable,
    is_decisive,
)
from goal_solver.game.game import Move


class CachePolicy(ABC):
    """Where search results are cached and when deepening stops."""

    name = 'base'

    def __init__(self):
        self.transposition = TranspositionTable()

    def probe(self, zobrist_hash: int, depth: int, alpha: float, beta: float) -> Optional[PlayRecord]:
        return self.transposition.probe(zobrist_hash, depth, alpha, beta)

    def store(self, zobrist_hash: int, record: PlayRecord) -> None:
        self.transposition.store(zobrist_hash, record)

    def lookup(self, zobrist_hash: int) -> Optional[PlayRecord]:
        """Any cached record for the hash, ignoring depth and window."""
        return self.transposition.get(zobrist_hash)

    def best_move(self, zobrist_hash: int) -> Optional[Move]:
        record = self.lookup(zobrist_hash)
        return record.move if record is not None else None

    def start_search(self) -> None:
        """Called once before the first deepening iteration."""

    @abstractmethod
    def iteration_finished(self, root_record: PlayRecord) -> bool:
        """
        Called after each deepening iteration.

        Returns:
            True if deepening should stop
        """

    def get_stats(self) -> dict:
        return {'tt': self.transposition.get_stats()}


class SessionCachePolicy(CachePolicy):
    """Single transposition table for one game session."""

    name = 'session'

    def iteration_finished(self, root_record: PlayRecord) -> bool:
        return is_decisive(root_record.score)


class SolvedGameCachePolicy(CachePolicy):
    """
    Lookup table of solved positions plus a transposition table of
    provisional ones.

    Attributes:
        lookup_table: Solved records, valid at any depth
        stability_iterations: Consecutive quiet iterations before stopping
        stable_iterations: Current run of quiet iterations
    """

    name = 'solved'

    def __init__(self, stability_iterations: int = SEARCH_CONFIG['stability_iterations'],
                 lookup_table: Optional[LookupTable] = None):
        super().__init__()
        self.lookup_table = lookup_table if lookup_table is not None else LookupTable()
        self.stability_iterations = stability_iterations
        self.stable_iterations = 0
        self._last_solved = 0
        self._last_known = 0

    def probe(self, zobrist_hash: int, depth: int, alpha: float, beta: float) -> Optional[PlayRecord]:
        solved = self.lookup_table.get(zobrist_hash)
        if solved is not None:
            return solved
        return self.transposition.probe(zobrist_hash, depth, alpha, beta)

    def store(self, zobrist_hash: int, record: PlayRecord) -> None:
        if record.solved:
            self.lookup_table.add(zobrist_hash, record)
        else:
            self.transposition.store(zobrist_hash, record)

    def lookup(self, zobrist_hash: int) -> Optional[PlayRecord]:
        solved = self.lookup_table.table.get(zobrist_hash)
        if solved is not None:
            return solved
        return self.transposition.get(zobrist_hash)

    def _known_positions(self) -> int:
        return len(self.lookup_table) + len(self.transposition)

    def start_search(self) -> None:
        self.stable_iterations = 0
        self._last_solved = len(self.lookup_table)
        self._last_known = self._known_positions()

    def iteration_finished(self, root_record: PlayRecord) -> bool:
        solved = len(self.lookup_table)
        known = self._known_positions()
        if solved == self._last_solved and known == self._last_known:
            self.stable_iterations += 1
        else:
            self.stable_iterations = 0
        self._last_solved = solved
        self._last_known = known
        return self.stable_iterations >= self.stability_iterations

    def get_stats(self) -> dict:
        stats = super().get_stats()
        stats['lookup'] = self.lookup_table.get_stats()
        return stats
