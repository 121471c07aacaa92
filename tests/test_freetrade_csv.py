import pytest

from cgt_ingest import TransactionNormalizer
from cgt_ingest.errors import (
    AmbiguousTransactionDirection,
    InvalidNumber,
    UnparsableDate,
    UnrecognizedContent,
    UnsupportedCurrency,
)
from cgt_ingest.ingest.adapters import FreetradeParser

HEADER = [
    "Title",
    "Type",
    "Timestamp",
    "Account Currency",
    "Total Amount",
    "Buy / Sell",
    "Ticker",
    "ISIN",
    "Price per Share in Account Currency",
    "Stamp Duty",
    "Quantity",
    "FX Fee Amount",
    "Dividend Ex Date",
    "Dividend Pay Date",
    "Dividend Eligible Quantity",
    "Dividend Net Distribution Amount",
    "Stock Split Ex Date",
    "Stock Split Pay Date",
    "Stock Split Rate From",
    "Stock Split Rate To",
]


def _csv(*rows: dict[str, str]) -> str:
    lines = [",".join(HEADER)]
    lines += [",".join(row.get(col, "") for col in HEADER) for row in rows]
    return "\n".join(lines) + "\n"


def _order(**overrides: str) -> dict[str, str]:
    row = {
        "Title": "Vanguard S&P 500",
        "Type": "ORDER",
        "Timestamp": "2021-10-15T14:30:12.000Z",
        "Account Currency": "GBP",
        "Total Amount": "1005.00",
        "Buy / Sell": "BUY",
        "Ticker": "VUSA",
        "ISIN": "IE00B3XXRP09",
        "Price per Share in Account Currency": "50.00",
        "Stamp Duty": "5.00",
        "Quantity": "20",
        "FX Fee Amount": "0.00",
    }
    row.update(overrides)
    return row


def test_mixed_export_to_lines():
    csv_text = _csv(
        {"Title": "Top up", "Type": "TOP_UP", "Timestamp": "2021-10-01T09:00:00.000Z", "Total Amount": "1000.00"},
        _order(),
        _order(
            Title="Apple",
            Timestamp="2021-11-02T10:00:00.000Z",
            **{
                "Buy / Sell": "SELL",
                "Ticker": "AAPL",
                "ISIN": "US0378331005",
                "Price per Share in Account Currency": "100.00",
                "Stamp Duty": "",
                "Quantity": "5.00000000",
                "FX Fee Amount": "1.50",
            },
        ),
        {
            "Type": "DIVIDEND",
            "Timestamp": "2021-12-20T00:00:00.000Z",
            "Account Currency": "GBP",
            "Ticker": "VUSA",
            "ISIN": "IE00B3XXRP09",
            "Dividend Ex Date": "2021-12-09",
            "Dividend Pay Date": "2021-12-23",
            "Dividend Eligible Quantity": "20",
            "Dividend Net Distribution Amount": "3.20",
        },
        {"Type": "MONTHLY_STATEMENT", "Timestamp": "2021-12-31T00:00:00.000Z"},
        {
            "Type": "STOCK_SPLIT",
            "Timestamp": "2022-08-25T00:00:00.000Z",
            "Ticker": "TSLA",
            "ISIN": "US88160R1014",
            "Stock Split Ex Date": "2022-08-25",
            "Stock Split Rate From": "1",
            "Stock Split Rate To": "3",
        },
    )

    assert TransactionNormalizer.normalize_to_lines(source="freetrade", content=csv_text) == [
        "BUY 15/10/2021 IE00B3XXRP09 20 50 5",
        "SELL 02/11/2021 US0378331005 5 100 1.5",
        "DIVIDEND 23/12/2021 IE00B3XXRP09 20 3.2",
        "SPLIT 25/08/2022 US88160R1014 3",
    ]


def test_zero_quantity_order_is_skipped():
    assert FreetradeParser().parse(_csv(_order(Quantity="0"))) == []


def test_reverse_split_and_fractional_ratio():
    csv_text = _csv(
        {
            "Type": "STOCK_SPLIT",
            "ISIN": "GB0000000001",
            "Stock Split Pay Date": "2023-01-10",
            "Stock Split Ex Date": "2023-01-09",
            "Stock Split Rate From": "10",
            "Stock Split Rate To": "1",
        },
        {
            "Type": "STOCK_SPLIT",
            "ISIN": "GB0000000002",
            "Stock Split Ex Date": "2023-02-01",
            "Stock Split Rate From": "2",
            "Stock Split Rate To": "3",
        },
    )
    assert FreetradeParser().parse_to_lines(csv_text) == [
        "UNSPLIT 10/01/2023 GB0000000001 10",
        "SPLIT 01/02/2023 GB0000000002 1.5",
    ]


def test_capital_return():
    csv_text = _csv(
        {
            "Type": "CAPITAL",
            "Timestamp": "2022-03-01T00:00:00.000Z",
            "Account Currency": "GBP",
            "Total Amount": "12.50",
            "ISIN": "GB00B03MLX29",
            "Quantity": "10",
        }
    )
    assert FreetradeParser().parse_to_lines(csv_text) == ["CAPRETURN 01/03/2022 GB00B03MLX29 10 12.5"]


def test_ticker_used_when_isin_blank():
    [line] = FreetradeParser().parse_to_lines(_csv(_order(ISIN="")))
    assert line == "BUY 15/10/2021 VUSA 20 50 5"


def test_dividend_without_eligible_quantity_is_skipped():
    csv_text = _csv(
        {
            "Type": "DIVIDEND",
            "ISIN": "IE00B3XXRP09",
            "Dividend Pay Date": "2021-12-23",
            "Dividend Net Distribution Amount": "3.20",
        }
    )
    assert FreetradeParser().parse(csv_text) == []


def test_foreign_account_currency_fails_with_row_number():
    csv_text = _csv(_order(), _order(**{"Account Currency": "USD"}))
    with pytest.raises(UnsupportedCurrency) as ei:
        FreetradeParser().parse(csv_text)
    assert ei.value.unit == "freetrade row 2"
    assert ei.value.field == "Account Currency"
    assert str(ei.value).startswith("freetrade row 2, field 'Account Currency': ")


def test_order_without_direction_fails():
    with pytest.raises(AmbiguousTransactionDirection):
        FreetradeParser().parse(_csv(_order(**{"Buy / Sell": ""})))


def test_non_positive_price_fails():
    with pytest.raises(InvalidNumber) as ei:
        FreetradeParser().parse(_csv(_order(**{"Price per Share in Account Currency": "0"})))
    assert ei.value.field == "Price per Share in Account Currency"


def test_bad_timestamp_fails():
    with pytest.raises(UnparsableDate) as ei:
        FreetradeParser().parse(_csv(_order(Timestamp="yesterday")))
    assert ei.value.field == "Timestamp"


def test_header_mismatch_is_unrecognized():
    with pytest.raises(UnrecognizedContent) as ei:
        FreetradeParser().parse("Type,Timestamp,Ticker\nORDER,2021-10-15,VUSA\n")
    assert "ISIN" in str(ei.value)
    assert "Quantity" in str(ei.value)


def test_header_without_direction_or_price_is_unrecognized():
    for column in ("Buy / Sell", "Price per Share in Account Currency"):
        header = [col for col in HEADER if col != column]
        csv_text = _csv(_order()).replace(",".join(HEADER), ",".join(header), 1)
        with pytest.raises(UnrecognizedContent) as ei:
            FreetradeParser().parse(csv_text)
        assert column in str(ei.value)


def test_byte_order_mark_is_ignored():
    assert FreetradeParser().parse_to_lines("\ufeff" + _csv(_order())) == [
        "BUY 15/10/2021 IE00B3XXRP09 20 50 5"
    ]
