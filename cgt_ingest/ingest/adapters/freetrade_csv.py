"""Adapter for Freetrade activity CSV exports.

Relevant columns (exact names):
Type, Timestamp, Account Currency, Total Amount, Buy / Sell, Ticker, ISIN,
Price per Share in Account Currency, Stamp Duty, Quantity, FX Fee Amount,
Dividend Ex Date, Dividend Pay Date, Dividend Eligible Quantity,
Dividend Net Distribution Amount, Stock Split Ex Date, Stock Split Pay Date,
Stock Split Rate From, Stock Split Rate To

Row classification is driven by ``Type``:

- ``ORDER`` → BUY/SELL from the explicit ``Buy / Sell`` marker
- ``DIVIDEND`` / ``SPECIAL_DIVIDEND`` → DIVIDEND
- ``CAPITAL`` / ``CAPITAL RETURN`` → CAPRETURN
- ``STOCK_SPLIT`` → SPLIT or UNSPLIT from the rate pair
- anything else (top-ups, withdrawals, interest, monthly fees) is skipped

Trade expenses are ``Stamp Duty + FX Fee Amount``; blank fee cells count as 0.
"""

from __future__ import annotations

from decimal import Decimal

from ...ctv import CanonicalTransaction, TransactionKind
from ...errors import (
    AmbiguousTransactionDirection,
    InvalidNumber,
    MissingAssetIdentifier,
    UnsupportedCurrency,
)
from ...fields import normalize_date, parse_number, parse_optional_number
from ..utils import CsvRow
from .base import CsvBrokerParser

_TRADE_TYPES = {"order"}
_DIVIDEND_TYPES = {"dividend", "special_dividend"}
_CAPITAL_RETURN_TYPES = {"capital", "capital return", "capital_return"}
_SPLIT_TYPES = {"stock_split", "stock split"}

_FEE_COLUMNS = ("Stamp Duty", "FX Fee Amount")


class FreetradeParser(CsvBrokerParser):
    source = "freetrade"
    required_columns = frozenset(
        {
            "Type",
            "Timestamp",
            "Ticker",
            "ISIN",
            "Quantity",
            "Buy / Sell",
            "Price per Share in Account Currency",
        }
    )

    def parse_row(self, row: CsvRow) -> CanonicalTransaction | None:
        row_type = row.get("Type").lower()
        if row_type in _TRADE_TYPES:
            return self._parse_trade(row)
        if row_type in _DIVIDEND_TYPES:
            return self._parse_dividend(row)
        if row_type in _CAPITAL_RETURN_TYPES:
            return self._parse_capital_return(row)
        if row_type in _SPLIT_TYPES:
            return self._parse_split(row)
        return self._skip(row.unit, f"type {row.get('Type')!r} is not a trade event")

    # -- helpers -------------------------------------------------------------

    def _asset(self, row: CsvRow) -> str:
        asset = row.get("ISIN") or row.get("Ticker")
        if not asset:
            raise MissingAssetIdentifier("neither ISIN nor Ticker is set", field="ISIN")
        return asset

    def _check_currency(self, row: CsvRow) -> None:
        currency = row.get("Account Currency").upper()
        if currency and currency != self.settings.base_currency:
            raise UnsupportedCurrency(
                f"account currency {currency} is not {self.settings.base_currency}",
                field="Account Currency",
            )

    # -- row kinds -----------------------------------------------------------

    def _parse_trade(self, row: CsvRow) -> CanonicalTransaction | None:
        marker = row.get("Buy / Sell").lower()
        if marker == "buy":
            kind = TransactionKind.BUY
        elif marker == "sell":
            kind = TransactionKind.SELL
        else:
            raise AmbiguousTransactionDirection(
                f"order row has no buy/sell marker: {row.get('Buy / Sell')!r}", field="Buy / Sell"
            )

        quantity = parse_number(row.get("Quantity"), field="Quantity")
        if quantity == 0:
            return self._skip(row.unit, "zero quantity")

        self._check_currency(row)
        price = parse_number(
            row.get("Price per Share in Account Currency"),
            field="Price per Share in Account Currency",
        )
        if price <= 0:
            raise InvalidNumber(
                f"price must be positive, got {price}", field="Price per Share in Account Currency"
            )

        expenses = sum(
            (parse_optional_number(row.get(col), field=col, default=Decimal(0)) for col in _FEE_COLUMNS),
            Decimal(0),
        )
        if expenses < 0:
            raise InvalidNumber(f"fees must not be negative, got {expenses}", field="Stamp Duty")

        return CanonicalTransaction.trade(
            kind,
            date=normalize_date(row.get("Timestamp"), field="Timestamp"),
            asset=self._asset(row),
            amount=abs(quantity),
            price=price,
            expenses=expenses,
        )

    def _parse_dividend(self, row: CsvRow) -> CanonicalTransaction | None:
        amount_raw = row.get("Dividend Eligible Quantity")
        value_raw = row.get("Dividend Net Distribution Amount")
        if not amount_raw or not value_raw:
            return self._skip(row.unit, "dividend without eligible quantity or net amount")

        amount = parse_number(amount_raw, field="Dividend Eligible Quantity")
        if amount == 0:
            return self._skip(row.unit, "dividend with zero eligible quantity")
        self._check_currency(row)

        date_col = "Dividend Pay Date" if row.get("Dividend Pay Date") else "Dividend Ex Date"
        return CanonicalTransaction.distribution(
            TransactionKind.DIVIDEND,
            date=normalize_date(row.get(date_col), field=date_col),
            asset=self._asset(row),
            amount=abs(amount),
            value=parse_number(value_raw, field="Dividend Net Distribution Amount"),
        )

    def _parse_capital_return(self, row: CsvRow) -> CanonicalTransaction | None:
        amount = parse_number(row.get("Quantity"), field="Quantity")
        if amount == 0:
            return self._skip(row.unit, "capital return with zero quantity")
        self._check_currency(row)
        return CanonicalTransaction.distribution(
            TransactionKind.CAPRETURN,
            date=normalize_date(row.get("Timestamp"), field="Timestamp"),
            asset=self._asset(row),
            amount=abs(amount),
            value=parse_number(row.get("Total Amount"), field="Total Amount"),
        )

    def _parse_split(self, row: CsvRow) -> CanonicalTransaction:
        rate_from = parse_number(row.get("Stock Split Rate From"), field="Stock Split Rate From")
        rate_to = parse_number(row.get("Stock Split Rate To"), field="Stock Split Rate To")
        if rate_from <= 0 or rate_to <= 0:
            raise InvalidNumber(
                f"split rates must be positive, got {rate_from}:{rate_to}",
                field="Stock Split Rate From",
            )
        if rate_to > rate_from:
            kind, multiplier = TransactionKind.SPLIT, rate_to / rate_from
        elif rate_to < rate_from:
            kind, multiplier = TransactionKind.UNSPLIT, rate_from / rate_to
        else:
            raise AmbiguousTransactionDirection(
                f"split rate {rate_from}:{rate_to} changes nothing", field="Stock Split Rate To"
            )

        date_col = "Stock Split Pay Date" if row.get("Stock Split Pay Date") else "Stock Split Ex Date"
        return CanonicalTransaction.split(
            kind,
            date=normalize_date(row.get(date_col), field=date_col),
            asset=self._asset(row),
            multiplier=multiplier,
        )


__all__ = ["FreetradeParser"]
