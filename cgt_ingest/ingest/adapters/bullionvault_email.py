"""Adapter for BullionVault "Dealing advice" emails.

Input is one raw message (headers plus a quoted-printable HTML body) or a batch
of them. Each message is decoded to plain text and matched against these
lines (``CUR`` must be the configured base currency):

    Summary: Buy 1.000kg @ GBP 45,000.00/kg       (or "Deal: ...")  required
    Consideration: GBP 45,000.00                  (or "Net consideration")
    Commission: GBP 10.00                         required
    Total cost: GBP 45,010.00                     (or "Total received")
    Deal time: October 15, 2021 at 10:00am GMT
    Security: Gold in London                      (optional)

A missing commission is a hard failure rather than a silent zero: the
historical variants of this importer disagreed, and the stricter rule keeps
a wrong cost basis out of the ledger.

The deal date comes from ``Deal time``; when that is absent or unparsable the
transport ``Date:`` header is used; with neither the email fails.

Batches are parsed concurrently (``IngestSettings.email_concurrency``
workers); results keep input order and the first failure aborts the batch.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal

from ...ctv import CanonicalTransaction, TransactionKind
from ...errors import (
    IngestError,
    InvalidNumber,
    MissingAssetIdentifier,
    UnparsableDate,
    UnrecognizedContent,
    UnsupportedCurrency,
)
from ...fields import normalize_date, parse_number
from ...logging_setup import get_logger
from ...pmap import p_map, p_map_skip
from ...settings import IngestSettings
from ..email_content import decode_email_body, transport_date_header
from .base import BrokerParser

_logger = get_logger("cgt_ingest.ingest.adapters.bullionvault_email")

_NUM = r"-?[0-9][0-9,]*(?:\.[0-9]+)?"
_CUR = r"[A-Z]{3}|[£$€]"

SUMMARY_RE = re.compile(
    r"(?:Summary|Deal):\s*(?P<kind>Buy|Sell)\s*(?P<quantity>" + _NUM + r")\s*kg\s*@\s*"
    r"(?P<currency>" + _CUR + r")\s*(?P<price>" + _NUM + r")\s*/?\s*kg",
    re.IGNORECASE,
)
CONSIDERATION_RE = re.compile(
    r"(?:Net\s+)?Consideration:\s*(?P<currency>" + _CUR + r")\s*(?P<amount>" + _NUM + ")",
    re.IGNORECASE,
)
COMMISSION_RE = re.compile(
    r"Commission:\s*(?P<currency>" + _CUR + r")\s*(?P<amount>" + _NUM + ")", re.IGNORECASE
)
TOTAL_RE = re.compile(
    r"Total\s+(?:cost|received):\s*(?P<currency>" + _CUR + r")\s*(?P<amount>" + _NUM + ")",
    re.IGNORECASE,
)
DEAL_TIME_RE = re.compile(r"Deal time:\s*(?P<value>.+)", re.IGNORECASE)
SECURITY_RE = re.compile(r"Security:\s*(?P<value>.+)", re.IGNORECASE)

# Date phrases seen in the Deal time field: "October 15, 2021 at 10:00am GMT",
# "11 October, 2024 at 3:00pm GMT", "15/10/2021 10:00", "2021-10-15T10:00:00".
_DEAL_DATE_RE = re.compile(
    r"\d{1,2}/\d{1,2}/\d{4}(?:\s+\d{1,2}:\d{2})?"
    r"|[A-Za-z]+\s+\d{1,2},\s*\d{4}(?:\s+at\s+\d{1,2}:\d{2}\s*[ap]m)?"
    r"|\d{1,2}(?:st|nd|rd|th)?\s+[A-Za-z]+,?\s+\d{4}"
    r"|\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2}(?::\d{2})?)?",
    re.IGNORECASE,
)
# The next "Label:" token ends a free-text field in the collapsed body.
_NEXT_LABEL_RE = re.compile(r"\s+[A-Z][A-Za-z]*(?:\s+[a-z]+)?:")

_CURRENCY_SYMBOLS = {"£": "GBP", "$": "USD", "€": "EUR"}

METAL_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("gold", "GOLD"),
    ("silver", "SILVER"),
    ("platinum", "PLATINUM"),
    ("palladium", "PALLADIUM"),
)


def _field_text(m: re.Match[str]) -> str:
    return _NEXT_LABEL_RE.split(m.group("value"), maxsplit=1)[0].strip()


class BullionVaultParser(BrokerParser):
    source = "bullionvault"

    def __init__(self, settings: IngestSettings | None = None, *, skip_unrecognized: bool = False) -> None:
        super().__init__(settings)
        self.skip_unrecognized = skip_unrecognized

    def parse(self, content: str | Sequence[str] | Mapping[str, str]) -> list[CanonicalTransaction]:
        """Parse one email, a list of emails, or a ``{label: email}`` mapping.

        Labels (file names, for instance) name the failing email in errors;
        list items are labelled ``email 1``, ``email 2``, ...
        """

        if isinstance(content, str):
            items = [("email 1", content)]
        elif isinstance(content, Mapping):
            items = list(content.items())
        else:
            items = [(f"email {i}", raw) for i, raw in enumerate(content, start=1)]

        def _one(item: tuple[str, str]) -> CanonicalTransaction | object:
            label, raw = item
            try:
                tx = self.parse_email(raw, label=label)
            except IngestError as e:
                if e.unit is None:
                    e.unit = f"{self.source} {label}"
                raise
            return p_map_skip if tx is None else tx

        out = p_map(items, _one, concurrency=self.settings.email_concurrency)
        _logger.info(
            "%s: %d transactions from %d emails (%d skipped)",
            self.source,
            len(out),
            len(items),
            len(items) - len(out),
        )
        return out

    def parse_email(self, raw: str, *, label: str = "email") -> CanonicalTransaction | None:
        text = decode_email_body(raw)

        summary = SUMMARY_RE.search(text)
        if summary is None:
            if self.skip_unrecognized:
                return self._skip(label, "no Summary/Deal line")
            raise UnrecognizedContent("no 'Summary:' or 'Deal:' line found", field="Summary")

        self._check_currency(summary.group("currency"), field="Summary")
        kind = TransactionKind.BUY if summary.group("kind").lower() == "buy" else TransactionKind.SELL

        quantity = parse_number(summary.group("quantity"), field="Summary quantity")
        if quantity == 0:
            raise InvalidNumber("quantity must be non-zero", field="Summary quantity")
        price = parse_number(summary.group("price"), field="Summary price")
        if price <= 0:
            raise InvalidNumber(f"price must be positive, got {price}", field="Summary price")

        commission = self._money(COMMISSION_RE, text, label="Commission")
        if commission is None:
            raise InvalidNumber("no 'Commission:' line found", field="Commission")
        if commission < 0:
            raise InvalidNumber(f"commission must not be negative, got {commission}", field="Commission")

        consideration = self._money(CONSIDERATION_RE, text, label="Consideration")
        self._money(TOTAL_RE, text, label="Total")
        if consideration is not None:
            expected = abs(quantity) * price
            if abs(abs(consideration) - expected) > Decimal("0.01"):
                _logger.warning(
                    "%s %s: consideration %s differs from %s x %s = %s",
                    self.source,
                    label,
                    consideration,
                    quantity,
                    price,
                    expected,
                )

        return CanonicalTransaction.trade(
            kind,
            date=self._deal_date(text, raw),
            asset=self._asset(text),
            amount=abs(quantity),
            price=price,
            expenses=commission,
        )

    # -- field helpers -------------------------------------------------------

    def _check_currency(self, token: str, *, field: str) -> None:
        code = _CURRENCY_SYMBOLS.get(token, token.upper())
        if code != self.settings.base_currency:
            raise UnsupportedCurrency(
                f"{code} is not the base currency {self.settings.base_currency}", field=field
            )

    def _money(self, pattern: re.Pattern[str], text: str, *, label: str) -> Decimal | None:
        m = pattern.search(text)
        if m is None:
            return None
        self._check_currency(m.group("currency"), field=label)
        return parse_number(m.group("amount"), field=label)

    def _deal_date(self, text: str, raw: str) -> date:
        deal_time = DEAL_TIME_RE.search(text)
        if deal_time is not None:
            # Only the Deal time cell; later rows may carry other dates.
            value = _field_text(deal_time)
            phrase = _DEAL_DATE_RE.search(value)
            candidate = phrase.group(0) if phrase else value
            try:
                return normalize_date(candidate, field="Deal time")
            except UnparsableDate:
                _logger.debug("%s: unparsable Deal time %r, trying Date header", self.source, candidate)

        header = transport_date_header(raw)
        if header is not None:
            try:
                return normalize_date(header, field="Date")
            except UnparsableDate:
                pass
        raise UnparsableDate("no parsable 'Deal time' line or Date header", field="Deal time")

    def _asset(self, text: str) -> str:
        security = SECURITY_RE.search(text)
        haystack = (_field_text(security) if security else text).lower()

        found = [
            (pos, asset)
            for keyword, asset in METAL_KEYWORDS
            if (pos := haystack.find(keyword)) >= 0
        ]
        if not found:
            where = "Security line" if security else "email text"
            raise MissingAssetIdentifier(f"no recognized metal in {where}", field="Security")
        return min(found)[1]


__all__ = ["BullionVaultParser", "METAL_KEYWORDS"]
