"""Error taxonomy for ``cgt_ingest``.

Every failure raised while turning broker content into canonical records is an
:class:`IngestError`. The subclasses name the category of failure; the
instance carries the offending ``field`` (column or email line label) and the
input ``unit`` (``"row 7"``, ``"email 3"``) so the caller can report exactly
what to fix. Parsers fill in ``unit`` as the error propagates out of the row
or email that raised it.

A classifier decision to skip an input unit is not an error and never raises.
"""

from __future__ import annotations


class IngestError(ValueError):
    """Base class for all ingest failures."""

    def __init__(self, message: str, *, field: str | None = None, unit: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.unit = unit

    def __str__(self) -> str:
        parts: list[str] = []
        if self.unit:
            parts.append(self.unit)
        if self.field:
            parts.append(f"field {self.field!r}")
        prefix = ", ".join(parts)
        return f"{prefix}: {self.message}" if prefix else self.message


class InvalidNumber(IngestError):
    """A numeric field is missing, unparsable, non-finite or out of range."""


class UnparsableDate(IngestError):
    """A date could not be resolved unambiguously to a calendar date."""


class MissingAssetIdentifier(IngestError):
    """No usable ticker/ISIN/SEDOL/asset name could be found."""


class UnsupportedCurrency(IngestError):
    """A monetary field is denominated in something other than the base currency."""


class AmbiguousTransactionDirection(IngestError):
    """BUY vs SELL (or SPLIT vs UNSPLIT) cannot be decided from the source fields."""


class UnrecognizedContent(IngestError):
    """An input unit matches none of the patterns the parser understands."""


class MalformedOutputLine(IngestError):
    """A formatted ledger line cannot be parsed back for sorting."""


class UnsupportedTransactionKind(IngestError):
    """A record carries a kind the formatter does not know how to emit."""


__all__ = [
    "AmbiguousTransactionDirection",
    "IngestError",
    "InvalidNumber",
    "MalformedOutputLine",
    "MissingAssetIdentifier",
    "UnparsableDate",
    "UnrecognizedContent",
    "UnsupportedCurrency",
    "UnsupportedTransactionKind",
]
