"""Runtime settings for ``cgt_ingest``.

Settings are a strict, frozen pydantic model. Library callers construct
``IngestSettings(...)`` directly; the CLI uses :meth:`IngestSettings.from_env`
after loading ``.env`` so that values can be overridden per machine:

- ``CGT_INGEST_BASE_CURRENCY``: expected account/email currency (``GBP``)
- ``CGT_INGEST_FUND_PREFIXES``: comma-separated fund-family prefixes used to
  derive asset identifiers from fund names
- ``CGT_INGEST_EMAIL_CONCURRENCY``: worker count for parsing emails
- ``CGT_INGEST_LEDGER``: ledger file path (``data.txt``)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from .fields import DEFAULT_FUND_PREFIXES


class IngestSettings(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, extra="forbid", str_strip_whitespace=True)

    base_currency: str = "GBP"
    fund_prefixes: tuple[str, ...] = DEFAULT_FUND_PREFIXES
    email_concurrency: int = 4
    ledger_path: Path = Path("data.txt")

    @field_validator("base_currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        code = v.upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("base_currency must be a 3-letter ISO code")
        return code

    @field_validator("fund_prefixes")
    @classmethod
    def _non_empty_prefixes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        items = tuple(p.strip() for p in v if p.strip())
        if not items:
            raise ValueError("fund_prefixes must contain at least one prefix")
        return items

    @field_validator("email_concurrency")
    @classmethod
    def _positive_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("email_concurrency must be a positive integer")
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> IngestSettings:
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if currency := env.get("CGT_INGEST_BASE_CURRENCY"):
            values["base_currency"] = currency
        if prefixes := env.get("CGT_INGEST_FUND_PREFIXES"):
            values["fund_prefixes"] = tuple(p for p in prefixes.split(",") if p.strip())
        if concurrency := env.get("CGT_INGEST_EMAIL_CONCURRENCY"):
            try:
                values["email_concurrency"] = int(concurrency)
            except ValueError as exc:
                raise ValueError(
                    f"CGT_INGEST_EMAIL_CONCURRENCY must be an integer, got {concurrency!r}"
                ) from exc
        if ledger := env.get("CGT_INGEST_LEDGER"):
            values["ledger_path"] = Path(ledger)
        return cls(**values)


__all__ = ["IngestSettings"]
