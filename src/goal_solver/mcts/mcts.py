import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from goal_solver.config import MCTS_CONFIG, SearchConfig
from goal_solver.engine.search_tree import SearchTree
from goal_solver.engine.zobrist import ZobristHasher
from goal_solver.game.game import Move

logger = logging.getLogger(__name__)


@dataclass
class MCTSResult:
    """Result of an MCTS search. `best_move` is None when there is no legal move."""
    best_move: Optional[Move]
    win_rate: float
    iterations: int
    tree_size: int
    time_ms: int
    move_stats: list[tuple[Move, int, int]] = field(default_factory=list)  # (move, visits, wins)

    @property
    def has_move(self) -> bool:
        return self.best_move is not None


class MCTS:
    """
    UCB1 Monte Carlo Tree Search over the shared search tree arena.

    Each iteration selects down the expanded part of the tree, expands the
    leaf it reaches, evaluates one node (terminal winner, or an optional
    short random playout) and backpropagates the winner to the root.
    """

    def __init__(self, rules, args=None, hasher=None):
        self.rules = rules
        self.args = {**MCTS_CONFIG, **(args or {})}
        self.hasher = hasher if hasher is not None else ZobristHasher.from_seed()
        self.rng = np.random.RandomState(self.args['seed'])

    @classmethod
    def from_config(cls, rules, config: SearchConfig, hasher=None) -> "MCTS":
        args = {
            'C': config.exploration,
            'num_searches': config.num_searches,
            'rollout_limit': config.rollout_limit,
            'seed': config.seed,
        }
        if hasher is None:
            hasher = ZobristHasher.from_seed(config.zobrist_seed)
        return cls(rules, args, hasher)

    def get_ucb(self, tree: SearchTree, parent: int, child: int) -> float:
        """
        UCB1 score of `child` as seen from `parent`.

        Unvisited children have infinite priority.
        """
        node = tree[child]
        if node.visits == 0:
            return math.inf
        q_value = node.wins / node.visits
        return q_value + self.args['C'] * math.sqrt(2 * math.log(tree[parent].visits) / node.visits)

    def select(self, tree: SearchTree, node: int) -> int:
        best_child = None
        best_ucb = -math.inf

        for child in tree.children(node):
            ucb = self.get_ucb(tree, node, child)
            if ucb > best_ucb:
                best_child = child
                best_ucb = ucb

        return best_child

    def evaluate(self, tree: SearchTree, node: int) -> Optional[int]:
        """
        Winner seen from `node`: the terminal winner, or the winner of a
        random playout of at most `rollout_limit` plies (None if undecided).
        """
        if tree.is_terminal(node):
            return tree.winner(node)

        limit = self.args['rollout_limit']
        if limit <= 0:
            return None

        position = tree.position(node).copy()
        for _ in range(limit):
            moves = self.rules.legal_moves(position.turn, position)
            if not moves:
                break
            self.rules.apply_move(moves[self.rng.randint(len(moves))], position)
            if self.rules.is_game_over(position):
                return self.rules.winner(position)
        return None

    def backpropagate(self, tree: SearchTree, node: int, winner: Optional[int]) -> None:
        """Count a visit on `node` and every ancestor, and a win where the node's move was the winner's."""
        for index in tree.ancestors(node):
            current = tree[index]
            current.visits += 1
            move = current.move
            if winner is not None and move is not None and move.team == winner:
                current.wins += 1

    def run(self, tree: SearchTree, root: int, num_searches: int) -> None:
        """Run `num_searches` select/expand/evaluate/backpropagate cycles."""
        for _ in range(num_searches):
            node = root

            # Selection
            while tree.is_expanded(node) and not tree.is_terminal(node) and tree.children(node):
                node = self.select(tree, node)

            # Expansion
            if not tree.is_terminal(node) and tree.children(node):
                node = self.select(tree, node)

            winner = self.evaluate(tree, node)
            self.backpropagate(tree, node, winner)

    def search(self, position, num_searches: Optional[int] = None) -> MCTSResult:
        """
        MCTS search from the given position.

        Returns:
            MCTSResult with the most visited root move
        """
        start_time = time.time()
        if num_searches is None:
            num_searches = self.args['num_searches']

        tree = SearchTree(self.rules, self.hasher)
        root = tree.add_root(position)

        if tree.is_terminal(root) or not tree.children(root):
            return MCTSResult(best_move=None, win_rate=0.0, iterations=0, tree_size=len(tree),
                              time_ms=int((time.time() - start_time) * 1000))

        self.run(tree, root, num_searches)

        move_stats = [(tree.move(child), tree[child].visits, tree[child].wins)
                      for child in tree.children(root)]

        # Most visited child, then best win rate, then rules order
        best_index = max(
            range(len(move_stats)),
            key=lambda i: (move_stats[i][1],
                           move_stats[i][2] / move_stats[i][1] if move_stats[i][1] else 0.0,
                           -i),
        )
        best_move, visits, wins = move_stats[best_index]
        result = MCTSResult(
            best_move=best_move,
            win_rate=wins / visits if visits else 0.0,
            iterations=num_searches,
            tree_size=len(tree),
            time_ms=int((time.time() - start_time) * 1000),
            move_stats=move_stats,
        )
        logger.info("MCTS: move %s visits %d win rate %.3f tree %d nodes (%d ms)",
                    best_move, visits, result.win_rate, result.tree_size, result.time_ms)
        return result
