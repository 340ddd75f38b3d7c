"""Logging setup for the command line scripts."""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_dir: Optional[str] = None) -> None:
    """
    Configure root logging once.

    Args:
        level: Log level for the console handler
        log_dir: If given, also append to <log_dir>/goal_solver.log
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path / "goal_solver.log"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
