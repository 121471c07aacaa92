"""Field-level normalizers shared by every source adapter.

Small pure helpers: numbers (``Decimal``), dates (``datetime.date`` rendered as
``DD/MM/YYYY``) and the fund-name → asset identifier heuristic. Each raises a
:mod:`cgt_ingest.errors` class naming the field it was asked to parse; none
substitutes a default for a value that is present but invalid.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from email.utils import parsedate_to_datetime

from .errors import InvalidNumber, MissingAssetIdentifier, UnparsableDate

DEFAULT_FUND_PREFIXES: tuple[str, ...] = ("Vanguard", "iShares", "Baillie Gifford")

# Grouping separators, currency symbols and stray whitespace.
_NUMBER_NOISE_RE = re.compile(r"[\s,£$€]")

# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def parse_number(raw: str | None, *, field: str) -> Decimal:
    """Parse ``raw`` as a finite decimal, tolerating ``£1,234.50`` style input."""

    if raw is None:
        raise InvalidNumber("value is missing", field=field)
    s = _NUMBER_NOISE_RE.sub("", str(raw))
    if not s:
        raise InvalidNumber("value is empty", field=field)
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise InvalidNumber(f"invalid number: {raw!r}", field=field) from exc
    if not d.is_finite():
        raise InvalidNumber(f"number is not finite: {raw!r}", field=field)
    return d


def parse_optional_number(raw: str | None, *, field: str, default: Decimal) -> Decimal:
    """Like :func:`parse_number`, but a blank cell yields ``default``."""

    if raw is None or not str(raw).strip():
        return default
    return parse_number(raw, field=field)


def is_number(raw: str | None) -> bool:
    """Return True when ``raw`` is present and parses as a finite number."""

    try:
        parse_number(raw, field="")
    except InvalidNumber:
        return False
    return True


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# Slash-delimited dates are always day-first (UK brokers).
_DATE_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
)

_MONTHS: dict[str, int] = {
    name: idx
    for idx, names in enumerate(
        (
            ("january", "jan"),
            ("february", "feb"),
            ("march", "mar"),
            ("april", "apr"),
            ("may",),
            ("june", "jun"),
            ("july", "jul"),
            ("august", "aug"),
            ("september", "sep", "sept"),
            ("october", "oct"),
            ("november", "nov"),
            ("december", "dec"),
        ),
        start=1,
    )
    for name in names
}

_DAY_MONTH_YEAR_RE = re.compile(
    r"\b(\d{1,2})(?:st|nd|rd|th)?\s+("
    + "|".join(sorted(_MONTHS, key=len, reverse=True))
    + r")\.?,?\s+(\d{4})\b",
    re.IGNORECASE,
)


def format_date(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year:04d}"


def _direct_parse(s: str) -> date | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(s).date()
    except (TypeError, ValueError, IndexError):
        return None


def normalize_date(raw: str | None, *, field: str) -> date:
    """Resolve a broker date string to a calendar date.

    Direct parsing is tried first (on the whole string, then with a trailing
    ``" at <time>"`` removed). Failing that, an explicit ``day month-name
    year`` phrase is searched for. Anything else raises ``UnparsableDate``.
    """

    if raw is None or not raw.strip():
        raise UnparsableDate("date is missing", field=field)
    s = re.sub(r"\s+", " ", raw.strip())

    candidates = [s]
    head, sep, _tail = s.partition(" at ")
    if sep:
        candidates.append(head.strip().rstrip(","))
    for candidate in candidates:
        parsed = _direct_parse(candidate)
        if parsed is not None:
            return parsed

    m = _DAY_MONTH_YEAR_RE.search(s)
    if m:
        day, month_name, year = m.groups()
        try:
            return date(int(year), _MONTHS[month_name.lower()], int(day))
        except ValueError as exc:
            raise UnparsableDate(f"not a calendar date: {raw!r}", field=field) from exc

    raise UnparsableDate(f"unrecognized date: {raw!r}", field=field)


# ---------------------------------------------------------------------------
# Asset identifiers
# ---------------------------------------------------------------------------


def derive_asset_identifier(
    name: str | None, *, prefixes: Iterable[str] = DEFAULT_FUND_PREFIXES, field: str = "asset"
) -> str:
    """Best-effort identifier for a fund known only by its free-text name.

    ``"Vanguard FTSE Global All Cap Index Fund, Accumulation"`` becomes
    ``"FTSE_Global_All_Cap_Index_Fund"``: the text after a known fund-family
    prefix up to the next comma. Without a known prefix the first three words
    are joined with ``_`` and stripped of non-alphanumerics. This is not a
    security-registry lookup; two different funds can collide.
    """

    text = (name or "").strip()
    for prefix in prefixes:
        m = re.search(re.escape(prefix) + r"\s+([^,]+)", text)
        if m:
            slug = re.sub(r"\s+", "_", m.group(1).strip())
            if slug:
                return slug

    slug = re.sub(r"[^A-Za-z0-9_]", "", "_".join(text.split()[:3]))
    if not slug:
        raise MissingAssetIdentifier(f"cannot derive an identifier from {name!r}", field=field)
    return slug


__all__ = [
    "DEFAULT_FUND_PREFIXES",
    "derive_asset_identifier",
    "format_date",
    "is_number",
    "normalize_date",
    "parse_number",
    "parse_optional_number",
]
