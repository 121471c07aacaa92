"""Adapter for Fidelity (UK) transaction history CSV exports.

The export opens with a few lines of account preamble; the real header is the
line starting with ``Order date``:

Order date, Completion date, Transaction type, Investments, Product Wrapper,
Account Number, Source investment, Amount, Quantity, Price per unit,
Reference Number, Status

Fidelity has no ticker column, so the asset identifier is derived from the
free-text ``Investments`` name (see
:func:`cgt_ingest.fields.derive_asset_identifier`). Direction comes from the
sign of ``Quantity``; expenses are folded into the unit price by Fidelity and
are emitted as 0.
"""

from __future__ import annotations

from decimal import Decimal

from ...ctv import CanonicalTransaction, TransactionKind
from ...errors import InvalidNumber
from ...fields import derive_asset_identifier, normalize_date, parse_number
from ..utils import CsvRow
from .base import CsvBrokerParser

# Cash legs, transfers and fee sweeps; matched as substrings of the
# lower-cased transaction type.
SKIP_TRANSACTION_TYPES: tuple[str, ...] = (
    "cash in",
    "cash out",
    "transfer out",
    "transfer to cash",
    "auto-sell for fees",
    "cash in fees",
    "cash out for buy",
    "cash in from sell",
)


class FidelityParser(CsvBrokerParser):
    source = "fidelity"
    header_start = "Order date"
    required_columns = frozenset(
        {"Completion date", "Transaction type", "Investments", "Amount", "Quantity", "Price per unit"}
    )

    def parse_row(self, row: CsvRow) -> CanonicalTransaction | None:
        tx_type = row.get("Transaction type").lower()
        investment = row.get("Investments")

        if not tx_type and not row.get("Quantity"):
            return self._skip(row.unit, "no transaction type or quantity (footer/notes)")
        if any(marker in tx_type for marker in SKIP_TRANSACTION_TYPES):
            return self._skip(row.unit, f"cash/transfer row {row.get('Transaction type')!r}")
        if investment.lower() == "cash":
            return self._skip(row.unit, "cash investment")

        quantity = parse_number(row.get("Quantity"), field="Quantity")
        parse_number(row.get("Amount"), field="Amount")
        if quantity == 0:
            return self._skip(row.unit, "zero quantity")

        kind = TransactionKind.BUY if quantity > 0 else TransactionKind.SELL
        return self._trade(kind, row, quantity)

    def _trade(self, kind: TransactionKind, row: CsvRow, quantity: Decimal) -> CanonicalTransaction:
        expected_positive = kind is TransactionKind.BUY
        if (quantity > 0) != expected_positive:
            raise InvalidNumber(
                f"quantity {quantity} has the wrong sign for {kind.value}", field="Quantity"
            )

        price = parse_number(row.get("Price per unit"), field="Price per unit")
        if price <= 0:
            raise InvalidNumber(
                f"price must be positive for {kind.value}, got {price}", field="Price per unit"
            )

        return CanonicalTransaction.trade(
            kind,
            date=normalize_date(row.get("Completion date"), field="Completion date"),
            asset=derive_asset_identifier(
                row.get("Investments"), prefixes=self.settings.fund_prefixes, field="Investments"
            ),
            amount=abs(quantity),
            price=price,
            expenses=Decimal(0),
        )


__all__ = ["FidelityParser", "SKIP_TRANSACTION_TYPES"]
