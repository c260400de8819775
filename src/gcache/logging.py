"""
Logging setup for gcache.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. Applications (the CLI included) call
setup_logging() once to send diagnostics to stderr via Rich.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "gcache"


def setup_logging(level: int | str = logging.WARNING, verbose: bool = False) -> logging.Logger:
    """Configure the gcache logger with a RichHandler on stderr.

    Args:
        level: Base log level.
        verbose: Force DEBUG level and show source paths.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger

