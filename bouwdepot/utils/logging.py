"""Centralized logging configuration."""

import logging
import sys
from typing import Optional, Set

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_default_level = "INFO"
_configured: Set[str] = set()


def _numeric_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the level last applied with ``set_log_level``

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)

    numeric_level = _numeric_level(level or _default_level)
    logger.setLevel(numeric_level)

    # Avoid duplicate handlers
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    _configured.add(name)
    return logger


def set_log_level(level: str) -> None:
    """Apply ``level`` to every logger handed out by ``get_logger`` and to later ones."""
    global _default_level
    _default_level = level.upper()
    numeric_level = _numeric_level(_default_level)
    for name in _configured:
        logger = logging.getLogger(name)
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
