"""CSV helpers shared by the broker adapters.

Parsing follows RFC 4180 through the stdlib :mod:`csv` module. Exports may
start with a byte-order mark or zero-width marks, and some (Fidelity) carry a
human-readable preamble above the real header; :func:`read_csv_rows` handles
both and hands adapters trimmed ``dict[str, str]`` rows numbered from 1.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import UnrecognizedContent

_LEADING_MARKS = "\ufeff\u200b\u200e\u200f"


@dataclass(frozen=True, slots=True)
class CsvRow:
    """One data row; ``number`` counts data rows from 1, header excluded."""

    number: int
    values: dict[str, str]

    def get(self, column: str) -> str:
        return self.values.get(column, "")

    @property
    def unit(self) -> str:
        return f"row {self.number}"


def _slice_from_header(text: str, header_start: str, *, source: str) -> str:
    """Return ``text`` from the first line whose first cell is ``header_start``."""

    lines = text.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        first_cell = next(csv.reader([line]), [""])
        if first_cell and first_cell[0].strip() == header_start:
            return "".join(lines[idx:])
    raise UnrecognizedContent(
        f"{source}: could not locate the header row starting with {header_start!r}"
    )


def read_csv_rows(
    text: str, *, source: str, header_start: str | None = None
) -> tuple[list[str], list[CsvRow]]:
    """Parse CSV ``text`` into (headers, rows).

    Header names and cells are stripped; extra cells on ragged rows are
    dropped and missing ones read as ``""``. Rows whose cells are all blank
    are skipped without consuming a row number.
    """

    text = text.lstrip(_LEADING_MARKS)
    if header_start is not None:
        text = _slice_from_header(text, header_start, source=source)

    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames is None:
        raise UnrecognizedContent(f"{source}: CSV has no header row")
    headers = [h.strip() for h in reader.fieldnames]
    reader.fieldnames = headers

    rows: list[CsvRow] = []
    for raw in reader:
        values = {k: (v or "").strip() for k, v in raw.items() if k is not None}
        if all(v == "" for v in values.values()):
            continue
        rows.append(CsvRow(number=len(rows) + 1, values=values))
    return headers, rows


def require_columns(headers: Iterable[str], required: Iterable[str], *, source: str) -> None:
    present = set(headers)
    missing = sorted(col for col in required if col not in present)
    if missing:
        raise UnrecognizedContent(
            f"{source}: CSV header mismatch. Missing columns: " + ", ".join(missing)
        )


__all__ = ["CsvRow", "read_csv_rows", "require_columns"]
