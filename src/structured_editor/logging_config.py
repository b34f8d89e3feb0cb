"""Logging configuration for the structured editor."""

import sys
from pathlib import Path

from loguru import logger

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Log to stderr, and additionally to ``log_file`` at debug level."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    if log_file is not None:
        logger.add(log_file, level="DEBUG", format=FILE_FORMAT, encoding="utf-8")
