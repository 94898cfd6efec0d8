"""Logging configuration for Cascade with custom verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Custom levels between the standard ones
CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30) - every date mutation
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20) - every edge evaluated

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_WARNINGS = 1  # Skipped edges and other diagnostics
VERBOSITY_CHANGES = 2  # Show date mutations
VERBOSITY_CHECKS = 3  # Show every constraint check
VERBOSITY_DEBUG = 4  # State transitions and index details


class CascadeLogger(logging.Logger):
    """Logger with semantic verbosity methods.

    - changes(): a node's dates moved
    - checks(): a dependency edge or container was evaluated
    - debug(): propagation state machine details
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a date mutation."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a constraint check."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> CascadeLogger:
    """Get the cascade logger instance (singleton).

    Use setup_logger() to configure it before first use.
    """
    logging.setLoggerClass(CascadeLogger)
    logger = logging.getLogger("cascade")
    assert isinstance(logger, CascadeLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the cascade logger with a verbosity level.

    Can be called multiple times to reconfigure the logger.

    Args:
        verbosity: 0=errors, 1=warnings, 2=changes, 3=checks, 4=debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_WARNINGS: logging.WARNING,
        VERBOSITY_CHANGES: CHANGES_LEVEL,
        VERBOSITY_CHECKS: CHECKS_LEVEL,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    logger.setLevel(level_map.get(verbosity, logging.ERROR))

    output_stream = stream if stream is not None else sys.stderr

    handler = logging.StreamHandler(output_stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Reset the logger to a clean, silent state."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def changes_enabled() -> bool:
    """Check if changes-level logging is enabled."""
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def checks_enabled() -> bool:
    """Check if checks-level logging is enabled."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """Check if debug-level logging is enabled."""
    return get_logger().isEnabledFor(logging.DEBUG)
