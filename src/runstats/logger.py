"""Logging configuration for runstats.

Every module logs through ``logging.getLogger(__name__)``, which makes the
``runstats`` package logger below the single place where output is routed.
"""

import logging
import os
import sys

logger = logging.getLogger("runstats")


def _level_from_env(default: int) -> int:
    name = os.environ.get("RUNSTATS_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logger(level: int = logging.INFO) -> None:
    """Attach a stdout handler to the runstats logger.

    ``RUNSTATS_LOG_LEVEL`` (e.g. ``DEBUG``) overrides ``level``. Calling this
    again only adjusts the level.

    Args:
        level: Logging level (default: INFO)
    """
    level = _level_from_env(level)
    logger.setLevel(level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("runstats: %(message)s"))

    logger.addHandler(handler)
    logger.propagate = False


setup_logger()
