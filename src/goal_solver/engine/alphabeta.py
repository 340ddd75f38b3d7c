"""
Alpha-beta minimax search engine for the Goal game.

One search loop serves both deployments; a cache policy decides where results
are kept and when iterative deepening stops (see cache_policy.py).

Key features:
- Minimax from the engine team's point of view (turns can be skipped, so the
  side to move decides whether a node maximizes or minimizes)
- Alpha-beta pruning (cut branches that can't affect final result)
- Iterative deepening over a fresh tree per iteration
- Transposition/lookup table integration with a depth guard
- Previous iteration's best root move searched first
- Principal variation extraction


Algorithm overview:

    def minimax(node, depth, alpha, beta):
        # Terminal or depth limit
        if terminal or depth == 0:
            return heuristic(node)

        # Cache lookup, only if searched at least as deep
        if record := cache.probe(node, depth, alpha, beta):
            return record

        best = -inf if our turn else +inf
        for child in ordered_children:
            score = minimax(child, depth-1, alpha, beta)
            if our turn: best = max(best, score); alpha = max(alpha, score)
            else:        best = min(best, score); beta = min(beta, score)
            if beta <= alpha:
                break  # Cutoff

        cache.store(node, depth, best, bound_type, best_move)
        return best
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from tqdm import tqdm

from goal_solver.config import SEARCH_CONFIG, SearchConfig
from goal_solver.engine.cache_policy import CachePolicy, SessionCachePolicy, SolvedGameCachePolicy
from goal_solver.engine.search_tree import SearchTree
from goal_solver.engine.transposition_table import (
    DECISIVE_THRESHOLD,
    DRAW_SCORE,
    WIN_SCORE,
    BoundType,
    PlayRecord,
)
from goal_solver.engine.zobrist import ZobristHasher
from goal_solver.game.game import Move, team_name

logger = logging.getLogger(__name__)

SCORE_INF = 1000000


@dataclass
class SearchResult:
    """Result of a minimax search. `best_move` is None when there is no legal move."""
    best_move: Optional[Move]
    score: float
    depth_reached: int
    nodes_searched: int
    time_ms: int
    principal_variation: list[Move] = field(default_factory=list)
    tt_stats: dict = field(default_factory=dict)

    @property
    def has_move(self) -> bool:
        return self.best_move is not None

    @property
    def decisive(self) -> bool:
        return abs(self.score) >= DECISIVE_THRESHOLD


def score_to_table(score: float, ply: int) -> float:
    """Make a decisive score relative to the node it is stored for."""
    if score >= DECISIVE_THRESHOLD:
        return score + ply
    if score <= -DECISIVE_THRESHOLD:
        return score - ply
    return score


def score_from_table(score: float, ply: int) -> float:
    """Inverse of score_to_table for a node at `ply` from the root."""
    if score >= DECISIVE_THRESHOLD:
        return score - ply
    if score <= -DECISIVE_THRESHOLD:
        return score + ply
    return score


class MinimaxEngine:
    """
    Minimax engine with alpha-beta pruning and iterative deepening.

    Leaves are scored by outcome only: +/-(WIN_SCORE - plies) for a win/loss,
    so faster wins and slower losses are preferred, and 0 for a draw or a
    depth-cutoff leaf (unless a leaf `evaluator` is given).
    """

    def __init__(
        self,
        rules,
        team: int,
        hasher: Optional[ZobristHasher] = None,
        policy: Optional[CachePolicy] = None,
        alpha_beta: bool = True,
        use_transposition: bool = True,
        evaluator: Optional[Callable] = None,
        max_depth: int = SEARCH_CONFIG['max_depth'],
        depth_step: int = SEARCH_CONFIG['session_depth_step'],
        show_progress: bool = False,
    ):
        """
        Initialize minimax engine.

        Args:
            rules: RulesEngine the positions are played by
            team: Team the engine maximizes for
            hasher: Position hasher (built from the default seed if None)
            policy: Cache policy (session policy if None)
            alpha_beta: Enable pruning
            use_transposition: Consult and fill the cache tables
            evaluator: Optional (position, team) -> float for depth-cutoff leaves
            max_depth: Maximum search depth limit
            depth_step: Plies added per deepening iteration
            show_progress: Show a tqdm bar over iterations
        """
        self.rules = rules
        self.team = team
        self.hasher = hasher if hasher is not None else ZobristHasher.from_seed()
        self.policy = policy if policy is not None else SessionCachePolicy()
        self.alpha_beta = alpha_beta
        self.use_transposition = use_transposition
        self.evaluator = evaluator
        self.max_depth = max_depth
        self.depth_step = depth_step
        self.show_progress = show_progress

        # Search statistics
        self.nodes_searched = 0
        self.current_max_depth = 0

        # Best root move of the previous iteration
        self.root_hint: Optional[Move] = None

    @classmethod
    def from_config(cls, rules, team: int, config: SearchConfig,
                    hasher: Optional[ZobristHasher] = None, **kwargs) -> "MinimaxEngine":
        if config.solved:
            policy = SolvedGameCachePolicy(stability_iterations=config.stability_iterations)
        else:
            policy = SessionCachePolicy()
        if hasher is None:
            hasher = ZobristHasher.from_seed(config.zobrist_seed)
        if config.heuristic == 'material' and not config.solved:
            kwargs.setdefault('evaluator', rules.material)
        return cls(
            rules,
            team,
            hasher=hasher,
            policy=policy,
            alpha_beta=config.effective_alpha_beta(),
            max_depth=config.effective_max_depth(),
            depth_step=config.effective_depth_step(),
            show_progress=config.show_progress,
            **kwargs,
        )

    def search(
        self,
        position,
        max_depth: Optional[int] = None,
        on_iteration: Optional[Callable[[SearchResult], bool]] = None,
    ) -> SearchResult:
        """
        Main search entry point with iterative deepening.

        Strategy:
        - Search depth step, 2*step, ... with a fresh tree each time
        - Keep the result of the last completed depth
        - Stop when the cache policy says so, at max_depth, or when
          `on_iteration` returns True

        Args:
            position: Position to search from (not modified)
            max_depth: Override maximum depth
            on_iteration: Callback after each completed iteration

        Returns:
            SearchResult with best move, score, statistics
        """
        start_time = time.time()
        self.nodes_searched = 0
        self.root_hint = None
        effective_max_depth = max_depth if max_depth is not None else self.max_depth

        # No legal move is reported as such, never as a zero-score move
        probe_tree = SearchTree(self.rules, self.hasher)
        root = probe_tree.add_root(position)
        if probe_tree.is_terminal(root) or not probe_tree.legal_moves(root):
            return SearchResult(
                best_move=None,
                score=self._heuristic(probe_tree, root, 0),
                depth_reached=0,
                nodes_searched=0,
                time_ms=int((time.time() - start_time) * 1000),
                tt_stats=self.policy.get_stats(),
            )

        self.policy.start_search()
        record = None
        depth_reached = 0
        depths = list(range(self.depth_step, effective_max_depth + 1, self.depth_step))
        if not depths or depths[-1] != effective_max_depth:
            depths.append(effective_max_depth)

        with tqdm(total=len(depths), desc=f"Deepening ({self.policy.name})", unit="depth",
                  disable=not self.show_progress, leave=False) as bar:
            for depth in depths:
                self.current_max_depth = depth
                tree = SearchTree(self.rules, self.hasher)
                root = tree.add_root(position)
                record = self._minimax(tree, root, depth, -SCORE_INF, SCORE_INF, 0)
                depth_reached = depth
                if record.move is not None:
                    self.root_hint = record.move

                bar.update(1)
                bar.set_postfix(score=record.score, nodes=self.nodes_searched)
                logger.debug("depth %d: score %s, move %s, tree %d nodes, %s",
                             depth, record.score, record.move, len(tree), self._table_sizes())

                stop = self.policy.iteration_finished(record)
                if on_iteration is not None:
                    stop = on_iteration(self._result(record, depth_reached, start_time)) or stop
                if stop:
                    break

        result = self._result(record, depth_reached, start_time)
        result.principal_variation = self.principal_variation(position)
        logger.info("%s search for %s: move %s score %s depth %d nodes %d (%d ms)",
                    self.policy.name, team_name(self.team), result.best_move, result.score,
                    result.depth_reached, result.nodes_searched, result.time_ms)
        return result

    def _result(self, record: PlayRecord, depth_reached: int, start_time: float) -> SearchResult:
        move = record.move if record.move is not None else self.root_hint
        return SearchResult(
            best_move=move,
            score=record.score,
            depth_reached=depth_reached,
            nodes_searched=self.nodes_searched,
            time_ms=int((time.time() - start_time) * 1000),
            tt_stats=self.policy.get_stats(),
        )

    def _table_sizes(self) -> str:
        stats = self.policy.get_stats()
        sizes = [f"tt={stats['tt']['size_entries']}"]
        if 'lookup' in stats:
            sizes.append(f"lookup={stats['lookup']['size_entries']}")
        return ' '.join(sizes)

    def _minimax(
        self,
        tree: SearchTree,
        node: int,
        depth: int,
        alpha: float,
        beta: float,
        ply: int
    ) -> PlayRecord:
        """
        Depth-bounded minimax with alpha-beta pruning.

        Args:
            tree: Arena of the current iteration
            node: Node index to search
            depth: Remaining depth
            alpha: Alpha bound
            beta: Beta bound
            ply: Ply from root

        Returns:
            PlayRecord with score from the engine team's perspective
        """
        self.nodes_searched += 1

        # Terminal check or depth limit
        if tree.is_terminal(node) or depth <= 0:
            return PlayRecord(None, self._heuristic(tree, node, ply), 0)

        # Probe cache
        zobrist_hash = tree.zobrist_hash(node)
        if self.use_transposition:
            cached = self.policy.probe(zobrist_hash, depth, alpha, beta)
            if cached is not None:
                return PlayRecord(cached.move, score_from_table(cached.score, ply), cached.depth, cached.bound)

        children = tree.children(node)
        if not children:
            return PlayRecord(None, self._heuristic(tree, node, ply), 0)

        maximizing = tree.position(node).turn == self.team
        best_score = -SCORE_INF if maximizing else SCORE_INF
        best_move = None
        original_alpha, original_beta = alpha, beta

        for child in self._order_children(tree, node, children, ply):
            score = self._minimax(tree, child, depth - 1, alpha, beta, ply + 1).score

            if maximizing:
                if score > best_score:
                    best_score = score
                    best_move = tree.move(child)
                alpha = max(alpha, score)
            else:
                if score < best_score:
                    best_score = score
                    best_move = tree.move(child)
                beta = min(beta, score)

            if self.alpha_beta and beta <= alpha:
                break

        # Determine bound type for the cache
        if not self.alpha_beta:
            bound = BoundType.EXACT
        elif best_score <= original_alpha:
            bound = BoundType.UPPER
        elif best_score >= original_beta:
            bound = BoundType.LOWER
        else:
            bound = BoundType.EXACT

        if self.use_transposition:
            self.policy.store(zobrist_hash, PlayRecord(best_move, score_to_table(best_score, ply), depth, bound))

        return PlayRecord(best_move, best_score, depth, bound)

    def _order_children(self, tree: SearchTree, node: int, children: list[int], ply: int) -> list[int]:
        """
        Move ordering: the previous iteration's best move at the root, else
        the cached best move, first; the rest keep rules order.
        """
        if ply == 0:
            hint = self.root_hint
        elif self.use_transposition:
            hint = self.policy.best_move(tree.zobrist_hash(node))
        else:
            hint = None
        if hint is None:
            return children

        first = [child for child in children if tree.move(child) == hint]
        if not first:
            return children
        return first + [child for child in children if child != first[0]]

    def _heuristic(self, tree: SearchTree, node: int, ply: int) -> float:
        """
        Score a leaf from the engine team's perspective.

        A win reached in fewer plies scores higher, a loss reached in more
        plies scores higher.
        """
        if tree.is_terminal(node):
            winner = tree.winner(node)
            if winner is None:
                return DRAW_SCORE
            if winner == self.team:
                return WIN_SCORE - ply
            return -(WIN_SCORE - ply)

        if self.evaluator is not None:
            # Keep heuristic values clear of the decisive range
            limit = DECISIVE_THRESHOLD - 1
            return max(-limit, min(limit, float(self.evaluator(tree.position(node), self.team))))

        return DRAW_SCORE

    def principal_variation(self, position, max_length: Optional[int] = None) -> list[Move]:
        """
        Follow cached best moves from `position`.

        Stops at a terminal position, a missing record, an illegal cached
        move, a repeated position or `max_length` moves.
        """
        max_length = max_length if max_length is not None else self.current_max_depth
        tree = SearchTree(self.rules, self.hasher)
        node = tree.add_root(position)
        seen = {tree.zobrist_hash(node)}
        line = []
        while len(line) < max_length and not tree.is_terminal(node):
            move = self.policy.best_move(tree.zobrist_hash(node))
            if move is None:
                break
            child = tree.child_for_move(node, move)
            if child is None or tree.zobrist_hash(child) in seen:
                break
            line.append(move)
            seen.add(tree.zobrist_hash(child))
            node = child
        return line

    def clear_tables(self):
        """Clear cached results."""
        self.policy.transposition.clear()
        if isinstance(self.policy, SolvedGameCachePolicy):
            self.policy.lookup_table.clear()

    def get_stats(self) -> dict:
        """Get search statistics."""
        return {
            'nodes_searched': self.nodes_searched,
            'max_depth': self.current_max_depth,
            **self.policy.get_stats(),
        }
