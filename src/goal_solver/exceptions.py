"""Error taxonomy for the search engines."""


class GoalSolverError(Exception):
    """Base class for all goal_solver errors."""


class ConfigError(GoalSolverError, ValueError):
    """Invalid search configuration."""


class StorageUnavailableError(GoalSolverError):
    """The lookup table store cannot be opened, read or written."""


class IllegalMoveError(GoalSolverError, RuntimeError):
    """
    A search engine produced a move the rules reject.

    The engines only ever return moves enumerated by the rules, so this is a
    contract violation between the two and is not meant to be recovered from.
    """
