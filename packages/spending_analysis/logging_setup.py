"""Logging configuration shared by the ``spending_analysis`` entrypoints.

Two helpers are public:

- ``configure_logging(...)``: install one ``StreamHandler`` on the package
  logger (``"spending_analysis"``). The CLI and the HTTP app factory call it
  at startup; repeated calls are no-ops.
- ``get_logger(name)``: return a child logger. Until an entrypoint configures
  logging, the package logger carries a ``NullHandler`` so library use stays
  silent.

Normalizers, aggregation and persistence modules only ever call
``get_logger(__name__)``; they never attach handlers themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "spending_analysis"
_LEVEL_ENV = "SPENDING_ANALYSIS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Translate ``level`` (or the environment) into a numeric logging level.

    Unknown names fall back to ``INFO`` rather than failing startup.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the package handler once and return the package logger.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` reads ``SPENDING_ANALYSIS_LOG_LEVEL``
        and defaults to ``INFO``.
    fmt:
        Optional format string for the handler.
    stream:
        Output stream, ``sys.stderr`` when omitted.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        return logger

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(numeric)
    # uvicorn configures the root logger; keep our records out of it.
    logger.propagate = False

    _handler = handler
    return logger


def reset_logging() -> None:
    """Detach the handler installed by :func:`configure_logging` (tests)."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
