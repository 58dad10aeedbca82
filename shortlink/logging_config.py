"""Logging setup for the short link service.

All modules log through children of the ``shortlink`` logger
(``logging.getLogger(__name__)``); this configures that parent once.
"""

import logging

from shortlink.config import Settings

__all__ = ["LOGGER_NAME", "setup_logging"]

LOGGER_NAME = "shortlink"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL.upper())
    return logger
