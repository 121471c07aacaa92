from datetime import date
from decimal import Decimal

import pytest

from cgt_ingest import CanonicalTransaction, TransactionKind
from cgt_ingest.errors import InvalidNumber, MissingAssetIdentifier, UnsupportedTransactionKind
from cgt_ingest.formatting import format_number, format_transaction
from cgt_ingest.ledger import line_date

D = date(2021, 10, 15)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("45000.00"), "45000"),
        (Decimal("1.000"), "1"),
        (Decimal("0.250"), "0.25"),
        (Decimal("1E+1"), "10"),
        (Decimal("-0.00"), "0"),
        (Decimal("0.00001"), "0.00001"),
    ],
)
def test_format_number_is_plain_and_trimmed(value, expected):
    assert format_number(value) == expected


def test_trade_line():
    tx = CanonicalTransaction.trade(
        TransactionKind.SELL,
        date=D,
        asset="GB00B03MLX29",
        amount=Decimal("12.5000"),
        price=Decimal("3.1415"),
        expenses=Decimal("11.95"),
    )
    assert format_transaction(tx) == "SELL 15/10/2021 GB00B03MLX29 12.5 3.1415 11.95"


def test_trade_expenses_default_to_zero():
    tx = CanonicalTransaction.trade(
        TransactionKind.BUY, date=D, asset="GOLD", amount=Decimal(1), price=Decimal(45000)
    )
    assert format_transaction(tx) == "BUY 15/10/2021 GOLD 1 45000 0"


def test_distribution_and_split_lines():
    div = CanonicalTransaction.distribution(
        TransactionKind.DIVIDEND, date=D, asset="VUSA", amount=Decimal("20"), value=Decimal("3.20")
    )
    cap = CanonicalTransaction.distribution(
        TransactionKind.CAPRETURN, date=D, asset="VUSA", amount=Decimal("20"), value=Decimal("1")
    )
    split = CanonicalTransaction.split(
        TransactionKind.UNSPLIT, date=date(2023, 1, 2), asset="TSLA", multiplier=Decimal("10")
    )
    assert format_transaction(div) == "DIVIDEND 15/10/2021 VUSA 20 3.2"
    assert format_transaction(cap) == "CAPRETURN 15/10/2021 VUSA 20 1"
    assert format_transaction(split) == "UNSPLIT 02/01/2023 TSLA 10"


def test_unknown_kind_is_rejected_not_blank():
    tx = CanonicalTransaction.split(TransactionKind.SPLIT, date=D, asset="X", multiplier=Decimal(2))
    # Bypass the frozen dataclass to simulate a record from a newer producer.
    object.__setattr__(tx, "kind", "TRANSFER")
    with pytest.raises(UnsupportedTransactionKind):
        format_transaction(tx)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"amount": Decimal(0), "price": Decimal(1)},
        {"amount": Decimal(-1), "price": Decimal(1)},
        {"amount": Decimal(1), "price": Decimal(0)},
        {"amount": Decimal("NaN"), "price": Decimal(1)},
        {"amount": Decimal(1), "price": Decimal(1), "expenses": Decimal("-0.01")},
    ],
)
def test_trade_invariants(kwargs):
    with pytest.raises(InvalidNumber):
        CanonicalTransaction.trade(TransactionKind.BUY, date=D, asset="GOLD", **kwargs)


def test_blank_asset_is_rejected():
    with pytest.raises(MissingAssetIdentifier):
        CanonicalTransaction.trade(
            TransactionKind.BUY, date=D, asset="  ", amount=Decimal(1), price=Decimal(1)
        )


def test_fields_foreign_to_the_kind_are_rejected():
    with pytest.raises(ValueError):
        CanonicalTransaction(
            kind=TransactionKind.SPLIT, date=D, asset="X", multiplier=Decimal(2), price=Decimal(1)
        )
    with pytest.raises(ValueError):
        CanonicalTransaction.trade(
            TransactionKind.DIVIDEND, date=D, asset="X", amount=Decimal(1), price=Decimal(1)
        )


def test_records_are_immutable():
    tx = CanonicalTransaction.split(TransactionKind.SPLIT, date=D, asset="X", multiplier=Decimal(2))
    with pytest.raises(AttributeError):
        tx.asset = "Y"  # type: ignore[misc]


@pytest.mark.parametrize("day", [date(2021, 1, 5), date(2020, 2, 29), date(2021, 12, 31)])
def test_formatted_lines_read_back_to_the_same_date(day):
    txs = [
        CanonicalTransaction.trade(
            TransactionKind.BUY, date=day, asset="GOLD", amount=Decimal("1"), price=Decimal("45000")
        ),
        CanonicalTransaction.distribution(
            TransactionKind.DIVIDEND, date=day, asset="VUSA", amount=Decimal("20"), value=Decimal("3.10")
        ),
        CanonicalTransaction.split(TransactionKind.SPLIT, date=day, asset="AAPL", multiplier=Decimal("4")),
    ]
    for tx in txs:
        line = format_transaction(tx)
        assert line.split()[1] == day.strftime("%d/%m/%Y")
        assert line_date(line) == day


def test_single_digit_day_and_month_are_zero_padded():
    tx = CanonicalTransaction.split(
        TransactionKind.UNSPLIT, date=date(2021, 1, 5), asset="AAPL", multiplier=Decimal("2")
    )
    assert format_transaction(tx).split()[1] == "05/01/2021"
