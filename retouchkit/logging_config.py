"""Logging helpers for retouchkit."""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "retouchkit"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger and set its level."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
