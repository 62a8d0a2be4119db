"""Logging configuration for fabric-tree."""

import sys

from loguru import logger

LOG_FORMAT = "{level.icon} <dim>{name}</dim> {message}"


def configure_logging(*, verbose: bool = False) -> None:
    """Send fabric-tree logs to stderr at INFO, or DEBUG when ``verbose``."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=False)
