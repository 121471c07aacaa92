"""Broker content → canonical transactions, dispatched by an explicit source tag.

Usage
-----
txs = TransactionNormalizer.normalize(source="freetrade", content=csv_text)
lines = TransactionNormalizer.normalize_to_lines(source="bullionvault", content=emails)

The source tag is always supplied by the caller; content is never sniffed to
guess which broker produced it.
"""

from __future__ import annotations

from typing import Any

from .ctv import CanonicalTransaction
from .ingest.adapters import (
    BrokerParser,
    BullionVaultParser,
    FidelityParser,
    FreetradeParser,
    IIParser,
)
from .settings import IngestSettings

_PARSERS: dict[str, type[BrokerParser]] = {
    "freetrade": FreetradeParser,
    "ii": IIParser,
    "interactive_investor": IIParser,
    "fidelity": FidelityParser,
    "bullionvault": BullionVaultParser,
    "bullion_vault": BullionVaultParser,
    "gold": BullionVaultParser,
}

EMAIL_SOURCES = frozenset({"bullionvault"})


def _resolve(source: str) -> type[BrokerParser]:
    key = source.strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return _PARSERS[key]
    except KeyError:
        known = ", ".join(sorted({cls.source for cls in _PARSERS.values()}))
        raise ValueError(f"unknown source: {source!r} (expected one of: {known})") from None


def canonical_source(source: str) -> str:
    """Fold aliases and spelling variants onto the adapter's own tag."""

    return _resolve(source).source


def get_parser(source: str, settings: IngestSettings | None = None, **options: Any) -> BrokerParser:
    return _resolve(source)(settings, **options)


class TransactionNormalizer:
    """Facade over the per-broker adapters."""

    @staticmethod
    def normalize(
        *, source: str, content: Any, settings: IngestSettings | None = None, **options: Any
    ) -> list[CanonicalTransaction]:
        return get_parser(source, settings, **options).parse(content)

    @staticmethod
    def normalize_to_lines(
        *, source: str, content: Any, settings: IngestSettings | None = None, **options: Any
    ) -> list[str]:
        return get_parser(source, settings, **options).parse_to_lines(content)


__all__ = [
    "EMAIL_SOURCES",
    "TransactionNormalizer",
    "canonical_source",
    "get_parser",
]
