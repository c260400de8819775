"""
Unit tests for logging setup.
"""

import logging

from rich.logging import RichHandler

from gcache.logging import LOGGER_NAME, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_single_rich_handler(self) -> None:
        """Calling setup twice leaves one RichHandler."""
        setup_logging()
        logger = setup_logging()

        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.name == LOGGER_NAME

    def test_verbose_enables_debug(self) -> None:
        """verbose=True sets DEBUG."""
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG
        setup_logging()
        assert logger.level == logging.WARNING

