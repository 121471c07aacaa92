"""Pytest configuration for test isolation.

Settings and log levels are read from ``CGT_INGEST_*`` environment variables,
and ``configure_logging`` keeps a module-level handler bound to whatever
``sys.stderr`` was current when it ran (a CLI runner's capture buffer, for
instance). Both would leak between tests, so every test starts from a clean
environment and an unconfigured package logger.
"""

from __future__ import annotations

import logging

import pytest

from cgt_ingest import logging_setup

_ENV_VARS = (
    "CGT_INGEST_BASE_CURRENCY",
    "CGT_INGEST_FUND_PREFIXES",
    "CGT_INGEST_EMAIL_CONCURRENCY",
    "CGT_INGEST_LEDGER",
    "CGT_INGEST_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("cgt_ingest")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    logging_setup._handler = None
