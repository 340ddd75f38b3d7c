from goal_solver.game.game import BLACK, EMPTY, OFF_BOARD, RED, TEAMS, Move, RulesEngine, opponent, team_name
from goal_solver.game.state import Position
from goal_solver.game.goal_game import GoalGame

__all__ = [
    'EMPTY',
    'RED',
    'BLACK',
    'TEAMS',
    'OFF_BOARD',
    'Move',
    'RulesEngine',
    'opponent',
    'team_name',
    'Position',
    'GoalGame',
]
