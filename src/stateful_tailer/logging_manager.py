"""Logging setup for the command line tailer.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the process entry point.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from .exceptions import ConfigError

LOGGER_NAME = "stateful_tailer"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(funcName)s:%(lineno)d %(message)s"


def parse_level(level: str | int) -> int:
    """Translate a level name such as ``"info"`` into its numeric value.

    Raises:
        ConfigError: If the name is not a standard logging level.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ConfigError(f"unknown log level: {level}")
    return value


def setup_logging(
    level: str | int = "WARNING", log_file: str | Path | None = None
) -> logging.Logger:
    """Configure the package logger with console and optional file handlers.

    Args:
        level: Level for console output.
        log_file: If given, everything down to DEBUG is also written here,
            rotated at 10MB with 5 backups.

    Returns:
        The configured ``stateful_tailer`` logger.
    """
    console_level = parse_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler - stderr, stdout carries the tailed lines
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    logger_level = console_level
    if log_file is not None:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        logger.addHandler(file_handler)
        logger_level = logging.DEBUG

    logger.setLevel(logger_level)
    return logger
