"""Adapter for Interactive Investor (ii) transaction CSV exports.

CSV header (exact keys expected):
Date, Settlement Date, Symbol, Sedol, Quantity, Price, Description,
Reference, Debit, Credit, Running Balance

Mapping rules:

- rows without a numeric ``Quantity`` (cash movements, ``n/a``) and rows with
  zero quantity are skipped
- direction comes from which monetary column is filled: ``Debit`` → BUY,
  ``Credit`` → SELL; both or neither is ambiguous and fails the run
- ``date``: ``Settlement Date``, strictly ``DD/MM/YYYY``
- ``asset``: ``Sedol``, falling back to ``Symbol``
- ``expenses``: always 0; ii does not break out dealing charges per trade
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from ...ctv import CanonicalTransaction, TransactionKind
from ...errors import (
    AmbiguousTransactionDirection,
    InvalidNumber,
    MissingAssetIdentifier,
    UnparsableDate,
)
from ...fields import is_number, parse_number
from ..utils import CsvRow
from .base import CsvBrokerParser


def _settlement_date(raw: str) -> date:
    if not raw:
        raise UnparsableDate("settlement date is missing", field="Settlement Date")
    try:
        return datetime.strptime(raw, "%d/%m/%Y").date()
    except ValueError as exc:
        raise UnparsableDate(f"expected DD/MM/YYYY, got {raw!r}", field="Settlement Date") from exc


class IIParser(CsvBrokerParser):
    source = "ii"
    required_columns = frozenset(
        {"Settlement Date", "Symbol", "Sedol", "Quantity", "Price", "Debit", "Credit"}
    )

    def parse_row(self, row: CsvRow) -> CanonicalTransaction | None:
        if not is_number(row.get("Quantity")):
            return self._skip(row.unit, f"non-numeric quantity {row.get('Quantity')!r}")
        quantity = parse_number(row.get("Quantity"), field="Quantity")
        if quantity == 0:
            return self._skip(row.unit, "zero quantity")

        has_debit = is_number(row.get("Debit"))
        has_credit = is_number(row.get("Credit"))
        if has_debit and not has_credit:
            kind = TransactionKind.BUY
        elif has_credit and not has_debit:
            kind = TransactionKind.SELL
        else:
            raise AmbiguousTransactionDirection(
                "unable to determine BUY/SELL: "
                f"Debit={row.get('Debit')!r}, Credit={row.get('Credit')!r}",
                field="Debit",
            )

        asset = row.get("Sedol") or row.get("Symbol")
        if not asset:
            raise MissingAssetIdentifier("neither Sedol nor Symbol is set", field="Sedol")

        price = parse_number(row.get("Price"), field="Price")
        if price <= 0:
            raise InvalidNumber(f"price must be positive, got {price}", field="Price")

        return CanonicalTransaction.trade(
            kind,
            date=_settlement_date(row.get("Settlement Date")),
            asset=asset,
            amount=abs(quantity),
            price=price,
            expenses=Decimal(0),
        )


__all__ = ["IIParser"]
