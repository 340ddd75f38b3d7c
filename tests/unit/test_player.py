"""
Tests for the Player entry point across the three search modes.
"""

import pytest

from goal_solver.config import SearchConfig, SearchMode
from goal_solver.engine.transposition_table import WIN_SCORE
from goal_solver.exceptions import IllegalMoveError, StorageUnavailableError
from goal_solver.game import BLACK, RED, GoalGame, Move
from goal_solver.player import DecisionSource, DecisionStatus, MoveHint, Player, find_best_move
from goal_solver.storage import LookupStore

SOLVED = SearchMode.SOLVED_GAME_MINIMAX


@pytest.fixture
def corrupt_store(tmp_path):
    db_path = tmp_path / "corrupt.db"
    db_path.write_bytes(b"garbage" * 200)
    store = LookupStore(db_path)
    yield store
    store.close()


@pytest.fixture
def memory_store():
    store = LookupStore(":memory:")
    yield store
    store.close()


class RejectingRules(GoalGame):
    """Rules that refuse every move the engine picks."""

    def is_legal(self, position, move):
        return False


class TestDecide:

    def test_session_search(self, rules, win_in_three):
        decision = Player(RED, rules=rules).decide(win_in_three)
        assert decision.ok
        assert decision.source == DecisionSource.SEARCH
        assert decision.move == Move(1, 1, 0, 1, RED)
        assert decision.score == WIN_SCORE - 3

    def test_single_move_skips_every_cache(self, rules, make_position, corrupt_store):
        position = make_position({(0, 1): RED, (1, 0): BLACK})
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=corrupt_store)
        decision = player.decide(position)
        assert decision.status == DecisionStatus.OK
        assert decision.source == DecisionSource.ONLY_MOVE
        assert decision.move == Move(0, 1, -1, 1, RED)

    def test_game_over(self, rules, finished_position):
        decision = Player(BLACK, rules=rules).decide(finished_position)
        assert decision.status == DecisionStatus.NO_LEGAL_MOVE
        assert decision.move is None

    def test_mcts_mode(self, rules, initial_position):
        config = SearchConfig(mode=SearchMode.MCTS, num_searches=100)
        decision = Player(RED, config, rules=rules).decide(initial_position)
        assert decision.ok
        assert decision.source == DecisionSource.MCTS
        assert rules.is_legal(initial_position, decision.move)

    def test_illegal_engine_move_raises(self, initial_position):
        player = Player(RED, SearchConfig(max_depth=2), rules=RejectingRules())
        with pytest.raises(IllegalMoveError):
            player.decide(initial_position)

    def test_find_best_move(self, rules, win_in_three, finished_position):
        assert find_best_move(win_in_three, RED, rules=rules) == Move(1, 1, 0, 1, RED)
        assert find_best_move(finished_position, RED, rules=rules) is None


class TestSolvedMode:

    def test_table_unavailable(self, rules, initial_position, corrupt_store):
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=corrupt_store)
        decision = player.decide(initial_position)
        assert decision.status == DecisionStatus.TABLE_UNAVAILABLE
        assert decision.move is None

    def test_not_in_table_falls_back_to_search(self, rules, win_in_three, memory_store):
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        decision = player.decide(win_in_three)
        assert decision.status == DecisionStatus.NOT_IN_TABLE
        assert decision.source == DecisionSource.SEARCH
        assert decision.move == Move(1, 1, 0, 1, RED)

    def test_rebuild_then_read_only(self, rules, win_in_three, memory_store):
        builder = Player(RED, SearchConfig(mode=SOLVED, rebuild=True), rules=rules, store=memory_store)
        assert builder.build_lookup_table(win_in_three) > 0
        built = builder.decide(win_in_three)
        assert built.ok
        assert built.source == DecisionSource.LOOKUP

        reader = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        read = reader.decide(win_in_three)
        assert read.ok
        assert read.source == DecisionSource.LOOKUP
        assert (read.move, read.score) == (built.move, built.score)
        assert read.score == WIN_SCORE - 3

    def test_scores_follow_the_reader(self, rules, win_in_three, memory_store):
        Player(RED, SearchConfig(mode=SOLVED, rebuild=True), rules=rules,
               store=memory_store).build_lookup_table(win_in_three)
        black_reader = Player(BLACK, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        decision = black_reader.decide(win_in_three)
        assert decision.score == -(WIN_SCORE - 3)

    def test_lookup_survives_failed_flush(self, rules, win_in_three, corrupt_store):
        player = Player(RED, SearchConfig(mode=SOLVED, rebuild=True), rules=rules, store=corrupt_store)
        player.build_lookup_table(win_in_three)
        decision = player.decide(win_in_three)
        assert decision.ok
        assert decision.source == DecisionSource.LOOKUP


class TestMoveHints:

    STRAIGHT = Move(1, 1, 0, 1, RED)
    CAPTURE = Move(1, 1, 0, 2, RED)

    def expected(self):
        return [
            MoveHint(self.STRAIGHT, WIN_SCORE - 3, 3, True),
            MoveHint(self.CAPTURE, WIN_SCORE - 3, 3, False),
        ]

    def test_hints_from_the_built_table(self, rules, win_in_three, memory_store):
        player = Player(RED, SearchConfig(mode=SOLVED, rebuild=True), rules=rules, store=memory_store)
        player.build_lookup_table(win_in_three)
        assert player.move_hints(win_in_three) == self.expected()

    def test_hints_from_the_store(self, rules, win_in_three, memory_store):
        Player(RED, SearchConfig(mode=SOLVED, rebuild=True), rules=rules,
               store=memory_store).build_lookup_table(win_in_three)
        reader = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        assert reader.move_hints(win_in_three) == self.expected()

    def test_move_into_the_goal(self, rules, make_position, memory_store):
        position = make_position({(0, 1): RED, (2, 2): BLACK})
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        assert player.move_hints(position) == [MoveHint(Move(0, 1, -1, 1, RED), WIN_SCORE - 1, 1, True)]

    def test_unknown_moves(self, rules, initial_position, memory_store):
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        hints = player.move_hints(initial_position)
        assert [hint.move for hint in hints] == rules.legal_moves(RED, initial_position)
        assert all(hint.score is None and hint.plies_to_end is None for hint in hints)
        assert not any(hint.is_best for hint in hints)

    def test_game_over(self, rules, finished_position, memory_store):
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=memory_store)
        assert player.move_hints(finished_position) == []

    def test_store_unavailable(self, rules, win_in_three, corrupt_store):
        player = Player(RED, SearchConfig(mode=SOLVED), rules=rules, store=corrupt_store)
        with pytest.raises(StorageUnavailableError):
            player.move_hints(win_in_three)
