"""Central logging setup for the project."""
from __future__ import annotations
import logging
import os
import sys

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int | str | None = None) -> None:
    """
    Configure root logger with a single stdout handler.

    Args:
        level: Logging level as an int or a name such as "DEBUG".
            Defaults to the LOG_LEVEL environment variable, then INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
