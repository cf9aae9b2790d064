"""Logging configuration."""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV = "NODEKEEPER_LOG_LEVEL"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name or __name__)

    # Only configure if no handlers exist
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())

    return logger


def set_log_level(level: str) -> None:
    """Apply a log level to every nodekeeper logger created so far."""
    level = level.upper()
    os.environ[LOG_LEVEL_ENV] = level
    for name in list(logging.root.manager.loggerDict):
        if name == "nodekeeper" or name.startswith("nodekeeper."):
            logging.getLogger(name).setLevel(level)
