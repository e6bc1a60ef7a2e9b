"""Logging setup for questdo."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "questdo"


def setup_logging(level: str = "warning") -> logging.Logger:
    """Attach a Rich handler on stderr to the questdo logger.

    Safe to call more than once; only the level changes on later calls.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)

    return logger

