"""
Unit tests for the minimax search engine.

Tests verify:
1. Engine finds forced wins and prefers the fastest
2. Alpha-beta returns the same score as plain minimax
3. Cached records only answer queries they searched deep enough for
4. No legal move is reported as such
5. Session search stops once the root is decided
"""

import numpy as np
import pytest

from goal_solver.config import SearchConfig, SearchMode
from goal_solver.engine.alphabeta import MinimaxEngine, score_from_table, score_to_table
from goal_solver.engine.cache_policy import SessionCachePolicy
from goal_solver.engine.transposition_table import DECISIVE_THRESHOLD, WIN_SCORE, PlayRecord
from goal_solver.game import BLACK, RED, Move


def brute_force(rules, position, team, depth, ply=0):
    """Plain minimax over full copies, no pruning and no caching."""
    if rules.is_game_over(position):
        winner = rules.winner(position)
        if winner is None:
            return 0
        return WIN_SCORE - ply if winner == team else -(WIN_SCORE - ply)
    moves = rules.legal_moves(position.turn, position)
    if depth == 0 or not moves:
        return 0
    scores = [brute_force(rules, position.next_position(move, rules), team, depth - 1, ply + 1)
              for move in moves]
    return max(scores) if position.turn == team else min(scores)


def random_positions(rules, count, points_to_win=1, seed=0, max_plies=8):
    rng = np.random.RandomState(seed)
    positions = []
    while len(positions) < count:
        position = rules.initial_position(points_to_win)
        for _ in range(rng.randint(0, max_plies + 1)):
            if rules.is_game_over(position):
                break
            moves = rules.legal_moves(position.turn, position)
            position = position.next_position(moves[rng.randint(len(moves))], rules)
        if not rules.is_game_over(position):
            positions.append(position)
    return positions


class TestMateDistance:
    """Node-relative storage of decisive scores."""

    def test_round_trip(self):
        for score in (WIN_SCORE - 7, -(WIN_SCORE - 7), 0, 12.5):
            assert score_from_table(score_to_table(score, 4), 4) == score

    def test_non_decisive_unchanged(self):
        assert score_to_table(0, 5) == 0
        assert score_to_table(DECISIVE_THRESHOLD - 1, 5) == DECISIVE_THRESHOLD - 1

    def test_win_stored_relative_to_node(self):
        # Win at ply 5 seen from a node at ply 2 is a win in 3
        assert score_to_table(WIN_SCORE - 5, 2) == WIN_SCORE - 3


class TestAlphaBetaEngine:
    """Test minimax search engine."""

    def test_finds_forced_win(self, rules, win_in_three):
        engine = MinimaxEngine(rules, RED)
        result = engine.search(win_in_three)

        assert result.best_move == Move(1, 1, 0, 1, RED)
        assert result.score == WIN_SCORE - 3
        assert result.decisive

    def test_losing_side_sees_the_loss(self, rules, make_position):
        # BLACK to move; RED scores next turn whatever BLACK does
        position = make_position({(0, 1): RED, (1, 2): BLACK}, turn=BLACK)
        result = MinimaxEngine(rules, BLACK).search(position)

        assert result.has_move
        assert result.score == -(WIN_SCORE - 2)

    def test_session_stops_when_decisive(self, rules, win_in_three):
        result = MinimaxEngine(rules, RED, max_depth=20).search(win_in_three)
        assert result.depth_reached == 3

    def test_principal_variation_is_playable(self, rules, win_in_three):
        engine = MinimaxEngine(rules, RED)
        result = engine.search(win_in_three)

        position = win_in_three
        assert result.principal_variation
        assert result.principal_variation[0] == result.best_move
        for move in result.principal_variation:
            assert rules.is_legal(position, move)
            position = position.next_position(move, rules)

    def test_no_legal_move_is_signalled(self, rules, finished_position):
        result = MinimaxEngine(rules, RED).search(finished_position)
        assert result.best_move is None
        assert not result.has_move
        assert result.depth_reached == 0

    def test_draw_scores_zero(self, rules, initial_position):
        result = MinimaxEngine(rules, RED, max_depth=4).search(initial_position)
        assert result.has_move
        assert result.score == 0
        assert result.depth_reached == 4

    @pytest.mark.parametrize("depth", [1, 2, 3, 4, 5])
    def test_alpha_beta_matches_minimax(self, rules, depth):
        """Pruning never changes the root score."""
        for position in random_positions(rules, 6, seed=depth):
            engine = MinimaxEngine(rules, position.turn, use_transposition=False, max_depth=depth)
            result = engine.search(position)
            assert result.score == brute_force(rules, position, position.turn, result.depth_reached)

    def test_exhaustive_matches_pruned(self, rules):
        for position in random_positions(rules, 6, seed=11):
            pruned = MinimaxEngine(rules, RED, use_transposition=False, max_depth=4).search(position)
            full = MinimaxEngine(rules, RED, alpha_beta=False, use_transposition=False,
                                 max_depth=4).search(position)
            assert pruned.score == full.score
            assert pruned.depth_reached == full.depth_reached

    def test_transposition_keeps_proven_scores(self, rules):
        """With caching on, a score proven by plain minimax comes out the same."""
        for position in random_positions(rules, 8, seed=5, max_plies=12):
            expected = brute_force(rules, position, RED, 5)
            if abs(expected) < DECISIVE_THRESHOLD:
                continue
            result = MinimaxEngine(rules, RED, max_depth=5).search(position)
            assert result.score == expected

    def test_evaluator_is_clamped(self, rules, initial_position):
        engine = MinimaxEngine(rules, RED, max_depth=1, evaluator=lambda position, team: 10 ** 6)
        result = engine.search(initial_position)
        assert result.score == DECISIVE_THRESHOLD - 1
        assert not result.decisive

    def test_material_evaluator_from_config(self, rules):
        engine = MinimaxEngine.from_config(rules, RED, SearchConfig(heuristic='material'))
        assert engine.evaluator == rules.material
        assert MinimaxEngine.from_config(rules, RED, SearchConfig()).evaluator is None
        solved = SearchConfig(mode=SearchMode.SOLVED_GAME_MINIMAX, heuristic='material')
        assert MinimaxEngine.from_config(rules, RED, solved).evaluator is None

    def test_material_scores_cutoff_leaves(self, rules, initial_position):
        config = SearchConfig(heuristic='material', max_depth=1)
        result = MinimaxEngine.from_config(rules, RED, config).search(initial_position)
        assert result.has_move
        assert result.score != 0
        assert not result.decisive


class TestCacheSoundness:
    """Records from shallower searches never answer deeper queries."""

    def wrong_record(self, depth):
        # Claims the capture is best and the position is level
        return PlayRecord(Move(1, 1, 0, 2, RED), 0, depth)

    def test_shallow_record_ignored(self, rules, hasher, win_in_three):
        policy = SessionCachePolicy()
        policy.store(hasher.hash_position(win_in_three), self.wrong_record(depth=0))
        engine = MinimaxEngine(rules, RED, hasher=hasher, policy=policy)

        result = engine.search(win_in_three)
        assert result.score == WIN_SCORE - 3
        assert result.best_move == Move(1, 1, 0, 1, RED)

    def test_deep_record_used(self, rules, hasher, win_in_three):
        policy = SessionCachePolicy()
        policy.store(hasher.hash_position(win_in_three), self.wrong_record(depth=99))
        engine = MinimaxEngine(rules, RED, hasher=hasher, policy=policy)

        result = engine.search(win_in_three)
        assert result.score == 0
        assert result.best_move == Move(1, 1, 0, 2, RED)

    def test_transposition_disabled_ignores_records(self, rules, hasher, win_in_three):
        policy = SessionCachePolicy()
        policy.store(hasher.hash_position(win_in_three), self.wrong_record(depth=99))
        engine = MinimaxEngine(rules, RED, hasher=hasher, policy=policy, use_transposition=False)

        result = engine.search(win_in_three)
        assert result.score == WIN_SCORE - 3

    def test_tables_cleared(self, rules, win_in_three):
        engine = MinimaxEngine(rules, RED)
        engine.search(win_in_three)
        assert engine.get_stats()['tt']['size_entries'] > 0
        engine.clear_tables()
        assert engine.get_stats()['tt']['size_entries'] == 0

    def test_iteration_callback_can_stop(self, rules, initial_position):
        seen = []

        def stop_after_two(result):
            seen.append(result.depth_reached)
            return len(seen) == 2

        result = MinimaxEngine(rules, RED, max_depth=10).search(initial_position, on_iteration=stop_after_two)
        assert seen == [1, 2]
        assert result.depth_reached == 2
