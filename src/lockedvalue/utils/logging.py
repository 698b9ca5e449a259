"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import sys

from rich.logging import RichHandler


PACKAGE_LOGGER = "lockedvalue"


def _configure(logger: logging.Logger, level: int, rich: bool) -> None:
    if logger.handlers:
        return

    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str, level: int = logging.INFO, *, rich: bool = True) -> logging.Logger:
    """Configure and return a logger.

    Loggers under ``lockedvalue.`` share the handler and level of the package logger, so
    ``set_level`` also reaches loggers created after it was called.
    """
    logger = logging.getLogger(name)
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        _configure(logging.getLogger(PACKAGE_LOGGER), level, rich)
    else:
        _configure(logger, level, rich)
    return logger


def set_level(level: int | str) -> None:
    """Apply ``level`` to the package logger and its handlers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    logger = get_logger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
