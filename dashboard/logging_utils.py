"""Shared logger for the dashboard client."""

from __future__ import annotations

import logging

BASE_LOGGER = logging.getLogger("dashboard")


def get_logger(suffix: str | None = None) -> logging.Logger:
    """Return the shared dashboard logger or one of its children."""

    if suffix is None:
        return BASE_LOGGER
    return BASE_LOGGER.getChild(suffix)


def configure_logging(level: str | int) -> None:
    """Attach a stderr handler to the base logger and set its level.

    Calling this more than once only updates the level.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    if not BASE_LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
        BASE_LOGGER.addHandler(handler)
    BASE_LOGGER.setLevel(level)
