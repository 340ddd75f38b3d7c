"""
Search tree stored as an arena of nodes.

Both minimax and MCTS walk the same kind of tree: every node wraps one
position, knows its parent, and builds its children (one per legal move)
lazily, once. Nodes live in a flat list owned by the tree and refer to each
other by index, so parent links never form reference cycles and the whole
tree is released together when the search that built it returns.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from goal_solver.game.game import Move


@dataclass
class SearchNode:
    """
    One node of the arena.

    Attributes:
        position: Position owned by this node (never mutated after creation)
        zobrist_hash: Hash of `position`
        parent: Index of the parent node (None for a root)
        children: Child indices in legal-move order (None until expanded)
        legal_moves: Cached legal moves of the side to move
        terminal: Cached game-over flag
        visits: MCTS visit count
        wins: MCTS win count
    """
    position: object
    zobrist_hash: int
    parent: Optional[int] = None
    children: Optional[list[int]] = None
    legal_moves: Optional[list[Move]] = None
    terminal: Optional[bool] = None
    visits: int = 0
    wins: int = 0

    @property
    def move(self) -> Optional[Move]:
        return self.position.move


class SearchTree:
    """
    Arena of search nodes sharing one rules engine and one hasher.

    Child hashes are derived incrementally from the parent hash.
    """

    def __init__(self, rules, hasher):
        self.rules = rules
        self.hasher = hasher
        self.nodes: list[SearchNode] = []

    def __len__(self):
        return len(self.nodes)

    def __getitem__(self, index: int) -> SearchNode:
        return self.nodes[index]

    def add_root(self, position) -> int:
        """Add a parentless node holding a private copy of `position`."""
        root_position = position.copy()
        node = SearchNode(root_position, self.hasher.hash_position(root_position))
        self.nodes.append(node)
        return len(self.nodes) - 1

    def _add_child(self, parent_index: int, move: Move) -> int:
        parent = self.nodes[parent_index]
        child_position = parent.position.next_position(move, self.rules)
        child_hash = self.hasher.hash_transition(parent.zobrist_hash, parent.position, child_position)
        self.nodes.append(SearchNode(child_position, child_hash, parent=parent_index))
        return len(self.nodes) - 1

    def position(self, index: int):
        return self.nodes[index].position

    def zobrist_hash(self, index: int) -> int:
        return self.nodes[index].zobrist_hash

    def parent(self, index: int) -> Optional[int]:
        return self.nodes[index].parent

    def move(self, index: int) -> Optional[Move]:
        return self.nodes[index].move

    def legal_moves(self, index: int) -> list[Move]:
        node = self.nodes[index]
        if node.legal_moves is None:
            node.legal_moves = self.rules.legal_moves(node.position.turn, node.position)
        return node.legal_moves

    def is_terminal(self, index: int) -> bool:
        node = self.nodes[index]
        if node.terminal is None:
            node.terminal = self.rules.is_game_over(node.position)
        return node.terminal

    def winner(self, index: int) -> Optional[int]:
        return self.rules.winner(self.nodes[index].position)

    def is_expanded(self, index: int) -> bool:
        return self.nodes[index].children is not None

    def children(self, index: int) -> list[int]:
        """Child indices, one per legal move; built on first call only."""
        node = self.nodes[index]
        if node.children is None:
            moves = self.legal_moves(index)
            node.children = [self._add_child(index, move) for move in moves]
        return node.children

    def child_for_move(self, index: int, move: Move) -> Optional[int]:
        """
        The child reached by `move`, reusing the cached child when present.

        Returns:
            Child index, or None if `move` is not legal here
        """
        for child in self.children(index):
            if self.nodes[child].move == move:
                return child
        return None

    def ancestors(self, index: int) -> Iterator[int]:
        """Yield `index` and then every ancestor up to the root."""
        current: Optional[int] = index
        while current is not None:
            yield current
            current = self.nodes[current].parent

    def ply(self, index: int) -> int:
        """Distance from the root."""
        return sum(1 for _ in self.ancestors(index)) - 1
