"""Logging configuration for the command-line front end."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: str | int) -> int:
    """Turn a level name ("info", "DEBUG") or number into a logging level."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(level: str | int = logging.WARNING) -> None:
    """Send putoff's logs to stderr.

    Call this once, early. Only the ``putoff`` logger tree is configured so
    embedding hosts keep control of the root logger.
    """
    logger = logging.getLogger("putoff")
    logger.setLevel(parse_level(level))

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
