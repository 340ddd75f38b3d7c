from goal_solver.mcts.mcts import MCTS, MCTSResult

__all__ = ['MCTS', 'MCTSResult']
