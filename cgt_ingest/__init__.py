"""Public interface for the ``cgt_ingest`` package.

Broker exports (Freetrade, Interactive Investor and Fidelity CSVs, BullionVault
dealing-advice emails) are parsed into :class:`CanonicalTransaction` records,
formatted as ledger lines and merged into a chronologically ordered ledger for
a capital-gains calculator. This module only re-exports the stable surface.
"""

from .ctv import CanonicalTransaction, TransactionKind
from .errors import (
    AmbiguousTransactionDirection,
    IngestError,
    InvalidNumber,
    MalformedOutputLine,
    MissingAssetIdentifier,
    UnparsableDate,
    UnrecognizedContent,
    UnsupportedCurrency,
    UnsupportedTransactionKind,
)
from .formatting import format_transaction
from .ledger import merge_lines
from .normalizers import TransactionNormalizer, get_parser
from .settings import IngestSettings

__all__ = [
    # Model
    "CanonicalTransaction",
    "TransactionKind",
    "IngestSettings",
    # Operations
    "TransactionNormalizer",
    "get_parser",
    "format_transaction",
    "merge_lines",
    # Errors
    "IngestError",
    "InvalidNumber",
    "UnparsableDate",
    "MissingAssetIdentifier",
    "UnsupportedCurrency",
    "AmbiguousTransactionDirection",
    "UnrecognizedContent",
    "MalformedOutputLine",
    "UnsupportedTransactionKind",
]
