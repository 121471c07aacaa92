"""Canonical transaction record shared by every broker source.

The record is a frozen ``dataclass`` validated at construction time. Which
numeric fields are populated depends on ``kind``:

    - BUY / SELL: ``amount``, ``price``, ``expenses``
    - DIVIDEND / CAPRETURN: ``amount`` (eligible quantity), ``value``
    - SPLIT / UNSPLIT: ``multiplier``

Fields that do not belong to the record's kind must be ``None``. Quantities are
always positive magnitudes; the direction of a trade lives in ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from .errors import InvalidNumber, MissingAssetIdentifier, UnparsableDate


class TransactionKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    CAPRETURN = "CAPRETURN"
    SPLIT = "SPLIT"
    UNSPLIT = "UNSPLIT"


TRADE_KINDS = frozenset({TransactionKind.BUY, TransactionKind.SELL})
DISTRIBUTION_KINDS = frozenset({TransactionKind.DIVIDEND, TransactionKind.CAPRETURN})
SPLIT_KINDS = frozenset({TransactionKind.SPLIT, TransactionKind.UNSPLIT})


def _require_finite(name: str, value: Decimal | None) -> Decimal:
    if value is None:
        raise InvalidNumber(f"{name} is required", field=name)
    if not isinstance(value, Decimal) or not value.is_finite():
        raise InvalidNumber(f"{name} must be a finite decimal, got {value!r}", field=name)
    return value


def _require_positive(name: str, value: Decimal | None) -> Decimal:
    v = _require_finite(name, value)
    if v <= 0:
        raise InvalidNumber(f"{name} must be strictly positive, got {v}", field=name)
    return v


def _require_absent(kind: TransactionKind, **fields: Decimal | None) -> None:
    for name, val in fields.items():
        if val is not None:
            raise ValueError(f"{kind.value} records do not carry {name!r}")


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """A single normalized broker event.

    Construct through :meth:`trade`, :meth:`distribution` or :meth:`split`
    unless every field is already at hand. Invariant violations raise the
    matching :mod:`cgt_ingest.errors` class.
    """

    kind: TransactionKind
    date: date
    asset: str
    amount: Decimal | None = None
    price: Decimal | None = None
    expenses: Decimal | None = None
    value: Decimal | None = None
    multiplier: Decimal | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, TransactionKind):
            raise ValueError(f"kind must be a TransactionKind, got {self.kind!r}")
        if not isinstance(self.date, date) or self.date.year < 1000:
            raise UnparsableDate(f"date must be a calendar date with a 4-digit year, got {self.date!r}")
        if not isinstance(self.asset, str) or not self.asset.strip():
            raise MissingAssetIdentifier("asset identifier is empty", field="asset")

        if self.kind in TRADE_KINDS:
            _require_positive("amount", self.amount)
            _require_positive("price", self.price)
            expenses = _require_finite("expenses", self.expenses)
            if expenses < 0:
                raise InvalidNumber(f"expenses must be non-negative, got {expenses}", field="expenses")
            _require_absent(self.kind, value=self.value, multiplier=self.multiplier)
        elif self.kind in DISTRIBUTION_KINDS:
            _require_positive("amount", self.amount)
            _require_finite("value", self.value)
            _require_absent(
                self.kind, price=self.price, expenses=self.expenses, multiplier=self.multiplier
            )
        else:
            _require_positive("multiplier", self.multiplier)
            _require_absent(
                self.kind,
                amount=self.amount,
                price=self.price,
                expenses=self.expenses,
                value=self.value,
            )

    @classmethod
    def trade(
        cls,
        kind: TransactionKind,
        *,
        date: date,
        asset: str,
        amount: Decimal,
        price: Decimal,
        expenses: Decimal = Decimal(0),
    ) -> CanonicalTransaction:
        if kind not in TRADE_KINDS:
            raise ValueError(f"{kind!r} is not a trade kind")
        return cls(kind=kind, date=date, asset=asset, amount=amount, price=price, expenses=expenses)

    @classmethod
    def distribution(
        cls, kind: TransactionKind, *, date: date, asset: str, amount: Decimal, value: Decimal
    ) -> CanonicalTransaction:
        if kind not in DISTRIBUTION_KINDS:
            raise ValueError(f"{kind!r} is not a distribution kind")
        return cls(kind=kind, date=date, asset=asset, amount=amount, value=value)

    @classmethod
    def split(
        cls, kind: TransactionKind, *, date: date, asset: str, multiplier: Decimal
    ) -> CanonicalTransaction:
        if kind not in SPLIT_KINDS:
            raise ValueError(f"{kind!r} is not a split kind")
        return cls(kind=kind, date=date, asset=asset, multiplier=multiplier)


__all__ = [
    "CanonicalTransaction",
    "DISTRIBUTION_KINDS",
    "SPLIT_KINDS",
    "TRADE_KINDS",
    "TransactionKind",
]
