"""Centralized logging configuration for the ``cgt_ingest`` package.

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package root
  logger (``"cgt_ingest"``). Called by the CLI at startup; later calls only
  adjust the level.
- ``get_logger(name)``: return a logger, making sure the package root has a
  ``NullHandler`` while nothing has been configured so library use stays
  silent.

Library modules never attach handlers of their own; they call
``get_logger("cgt_ingest.<module>")``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "cgt_ingest"
_LEVEL_ENV = "CGT_INGEST_LOG_LEVEL"
_DEFAULT_FMT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"unknown log level: {level!r}")
    env_val = os.getenv(_LEVEL_ENV)
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Configure the package root logger.

    ``level`` accepts an ``int`` or a level name; when ``None`` the
    ``CGT_INGEST_LOG_LEVEL`` environment variable is consulted, then INFO.
    ``stream`` defaults to the current ``sys.stderr``.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    numeric = _parse_level(level)

    if _handler is None:
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FMT))
        logger.addHandler(_handler)
        logger.propagate = False

    _handler.setLevel(numeric)
    logger.setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
