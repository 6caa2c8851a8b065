"""
Logging helpers shared by every symextrema module.
"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "symextrema"
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s: %(message)s"


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Create a logger with uniform format.

    Params:
        name: logger name, usually __name__ of the caller module.
        level: logging level string (e.g., 'DEBUG', 'INFO').

    Returns:
        Configured logging.Logger instance.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger


def configure_logging(level: str) -> None:
    """Apply ``level`` to every logger created under the package namespace."""
    value = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(PACKAGE_LOGGER).setLevel(value)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(PACKAGE_LOGGER) and isinstance(logger, logging.Logger):
            logger.setLevel(value)
