"""Minimal logging utilities for livedom.

Provides a simple get_logger function that wraps the standard library logging.

Example:
    >>> from livedom.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Reparsing subtree")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "livedom." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("mymodule")
        >>> logger.name
        'livedom.mymodule'
    """
    if not (name == "livedom" or name.startswith("livedom.")):
        name = f"livedom.{name}"
    return logging.getLogger(name)
