"""
Search engine components for the Goal game.

This module contains:
- Zobrist hashing for fast position lookup
- Search tree arena shared by minimax and MCTS
- Transposition and lookup tables for caching search results
- Cache policies for session play and solved-game building
- Alpha-beta minimax with iterative deepening
"""

from goal_solver.engine.zobrist import ZobristHasher, ZobristKeys
from goal_solver.engine.search_tree import SearchNode, SearchTree
from goal_solver.engine.transposition_table import (
    DECISIVE_THRESHOLD,
    WIN_SCORE,
    BoundType,
    LookupTable,
    PlayRecord,
    RecordStatus,
    TranspositionTable,
)
from goal_solver.engine.cache_policy import CachePolicy, SessionCachePolicy, SolvedGameCachePolicy
from goal_solver.engine.alphabeta import MinimaxEngine, SearchResult

__all__ = [
    'ZobristHasher',
    'ZobristKeys',
    'SearchNode',
    'SearchTree',
    'DECISIVE_THRESHOLD',
    'WIN_SCORE',
    'BoundType',
    'LookupTable',
    'PlayRecord',
    'RecordStatus',
    'TranspositionTable',
    'CachePolicy',
    'SessionCachePolicy',
    'SolvedGameCachePolicy',
    'MinimaxEngine',
    'SearchResult',
]
