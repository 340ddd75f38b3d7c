"""
Transposition and lookup tables for caching minimax results.

The transposition table stores previously computed positions to avoid redundant
work during the search. Entries from depth D-1 are reused when iterative
deepening searches depth D, as long as they were searched at least as deep as
the query needs.

The lookup table only ever holds solved positions, whose outcome no deeper
search can change. Its entries are valid at any depth and are what gets
persisted for instant replay.

Key concepts:
- Bound types: EXACT (all children searched), LOWER (beta cutoff, actual value >= stored value),
  UPPER (alpha cutoff, actual value <= stored value)
- Record status: SOLVED, PROVISIONAL or CUTOFF, stated explicitly instead of
  being guessed from the score
- Replacement policy: depth-preferred (never replace a deeper search with a shallower one)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from goal_solver.game.game import Move

# Sentinel values for win/loss/draw
WIN_SCORE = 2000
DECISIVE_THRESHOLD = 1000
DRAW_SCORE = 0


class BoundType(Enum):
    """Type of bound stored in a play record."""
    EXACT = 0   # Exact value, every child searched with a full window
    LOWER = 1   # Lower bound (beta cutoff, actual value >= stored value)
    UPPER = 2   # Upper bound (alpha cutoff, actual value <= stored value)


class RecordStatus(Enum):
    """How far a cached score can be trusted."""
    SOLVED = 'solved'            # Exact and decisive: valid at any depth
    PROVISIONAL = 'provisional'  # Exact, but only up to the recorded depth
    CUTOFF = 'cutoff'            # Some children were pruned, score is only a bound


def is_decisive(score: float) -> bool:
    return abs(score) >= DECISIVE_THRESHOLD


@dataclass
class PlayRecord:
    """
    A cached search result.

    Attributes:
        move: Best move found (None at a leaf)
        score: Score from the searching team's perspective
        depth: Remaining depth actually explored below this position
        bound: Type of bound
    """
    move: Optional[Move]
    score: float
    depth: int
    bound: BoundType = BoundType.EXACT

    @property
    def status(self) -> RecordStatus:
        if self.bound != BoundType.EXACT:
            return RecordStatus.CUTOFF
        if is_decisive(self.score):
            return RecordStatus.SOLVED
        return RecordStatus.PROVISIONAL

    @property
    def solved(self) -> bool:
        return self.status == RecordStatus.SOLVED

    def usable(self, depth: int, alpha: float, beta: float) -> bool:
        """
        Whether this record answers a query at `depth` within (alpha, beta).

        A shallower record never answers a deeper query.
        """
        if self.depth < depth:
            return False
        if self.bound == BoundType.EXACT:
            return True
        if self.bound == BoundType.LOWER:
            return self.score >= beta
        return self.score <= alpha


class TranspositionTable:
    """
    Hash-keyed cache of provisional search results.

    Implementation:
    - Dictionary keyed by the full 64-bit hash (no index collisions)
    - Depth-preferred replacement
    - Cleared per engine instance, shared by the iterations of one search
    """

    def __init__(self):
        self.table: dict[int, PlayRecord] = {}

        # Statistics
        self.hits = 0
        self.misses = 0
        self.stores = 0

    def __len__(self):
        return len(self.table)

    def __contains__(self, zobrist_hash: int):
        return zobrist_hash in self.table

    def get(self, zobrist_hash: int) -> Optional[PlayRecord]:
        """Raw access without any depth or bound check."""
        return self.table.get(zobrist_hash)

    def probe(
        self,
        zobrist_hash: int,
        depth: int,
        alpha: float,
        beta: float
    ) -> Optional[PlayRecord]:
        """
        Probe transposition table for cached result.

        Returns cached record if:
        1. An entry exists for this hash
        2. Stored depth >= query depth (deeper search is more accurate)
        3. Bound type allows cutoff given current alpha-beta window

        Args:
            zobrist_hash: Position hash
            depth: Remaining search depth at the querying node
            alpha: Current alpha bound
            beta: Current beta bound

        Returns:
            PlayRecord if usable entry found, None otherwise
        """
        entry = self.table.get(zobrist_hash)
        if entry is not None and entry.usable(depth, alpha, beta):
            self.hits += 1
            return entry
        self.misses += 1
        return None

    def store(self, zobrist_hash: int, record: PlayRecord) -> bool:
        """
        Store a search result.

        Replacement policy: keep the existing entry if it was searched
        deeper, or at the same depth with an exact score while the new one
        is only a bound.

        Returns:
            True if the record was written
        """
        existing = self.table.get(zobrist_hash)
        if existing is not None:
            if record.depth < existing.depth:
                return False
            if (record.depth == existing.depth
                    and record.bound != BoundType.EXACT
                    and existing.bound == BoundType.EXACT):
                return False

        self.table[zobrist_hash] = record
        self.stores += 1
        return True

    def get_best_move(self, zobrist_hash: int) -> Optional[Move]:
        """
        Retrieve best move without depth checking.

        Useful for move ordering even when depth/bounds don't allow cutoff.
        """
        entry = self.table.get(zobrist_hash)
        return entry.move if entry is not None else None

    def clear(self):
        """Clear all entries."""
        self.table = {}
        self._reset_stats()

    def _reset_stats(self):
        self.hits = 0
        self.misses = 0
        self.stores = 0

    def get_stats(self) -> dict:
        """
        Get transposition table statistics.

        Returns:
            Dictionary with hits, misses, hit rate, stores and size
        """
        total_queries = self.hits + self.misses
        hit_rate = self.hits / total_queries if total_queries > 0 else 0.0

        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': hit_rate,
            'stores': self.stores,
            'size_entries': len(self.table),
        }


class LookupTable:
    """
    Solved positions only: hash -> record whose outcome is certain.

    Entries never expire and are not depth-checked. The table is what the
    solved-game builder persists.
    """

    def __init__(self, records: Optional[dict[int, PlayRecord]] = None):
        self.table: dict[int, PlayRecord] = dict(records or {})
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self.table)

    def __contains__(self, zobrist_hash: int):
        return zobrist_hash in self.table

    def __iter__(self) -> Iterator[int]:
        return iter(self.table)

    def items(self):
        return self.table.items()

    def get(self, zobrist_hash: int) -> Optional[PlayRecord]:
        entry = self.table.get(zobrist_hash)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def add(self, zobrist_hash: int, record: PlayRecord) -> bool:
        """
        Add a solved record. The first solution of a position is kept.

        Returns:
            True if the position was not in the table before

        Raises:
            ValueError: if the record is not solved
        """
        if not record.solved:
            raise ValueError(f"Only solved records belong in the lookup table, got {record.status}")
        if zobrist_hash in self.table:
            return False
        self.table[zobrist_hash] = record
        return True

    def clear(self):
        self.table = {}
        self.hits = 0
        self.misses = 0

    def get_stats(self) -> dict:
        total_queries = self.hits + self.misses
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total_queries if total_queries > 0 else 0.0,
            'size_entries': len(self.table),
        }
