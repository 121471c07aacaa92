"""Canonical record → ledger line.

Line layouts (single spaces, positional):

    BUY|SELL          DATE ASSET AMOUNT PRICE EXPENSES
    DIVIDEND|CAPRETURN DATE ASSET AMOUNT VALUE
    SPLIT|UNSPLIT     DATE ASSET MULTIPLIER

``DATE`` is ``DD/MM/YYYY``. Numbers are printed in plain notation with
trailing zeros removed, so ``Decimal("45000.00")`` prints as ``45000``.
"""

from __future__ import annotations

from decimal import Decimal

from .ctv import DISTRIBUTION_KINDS, SPLIT_KINDS, TRADE_KINDS, CanonicalTransaction
from .errors import UnsupportedTransactionKind
from .fields import format_date


def format_number(d: Decimal) -> str:
    if d == 0:
        return "0"
    return format(d.normalize(), "f")


def format_transaction(tx: CanonicalTransaction) -> str:
    """Render one record; unknown kinds raise instead of yielding a blank line."""

    kind = tx.kind
    head = f"{getattr(kind, 'value', kind)} {format_date(tx.date)} {tx.asset}"
    if kind in TRADE_KINDS:
        return (
            f"{head} {format_number(tx.amount)} {format_number(tx.price)} "
            f"{format_number(tx.expenses)}"
        )
    if kind in DISTRIBUTION_KINDS:
        return f"{head} {format_number(tx.amount)} {format_number(tx.value)}"
    if kind in SPLIT_KINDS:
        return f"{head} {format_number(tx.multiplier)}"
    raise UnsupportedTransactionKind(f"cannot format transaction kind {kind!r}", field="kind")


def format_transactions(txs: list[CanonicalTransaction]) -> list[str]:
    return [format_transaction(tx) for tx in txs]


__all__ = ["format_number", "format_transaction", "format_transactions"]
