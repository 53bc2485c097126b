"""Logging utilities for shrinkld.

This module provides loguru-based logging configuration.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:HH:mm:ss} | <level>{level: <8}</level> | {message}"


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru for shrinkld.

    Sets up console logging with INFO level (or DEBUG if verbose), and
    optional file logging with JSON serialization.

    Args:
        verbose: If True, set console logging to DEBUG level.
        log_file: Optional path to log file. If provided, DEBUG-level
            logs are written with JSON serialization, including the
            bound memory readings.
    """
    logger.remove()

    logger.add(
        sys.stdout,
        level="DEBUG" if verbose else "INFO",
        format=LOG_FORMAT,
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            serialize=True,
            level="DEBUG",
        )
