"""Merge, deduplicate and chronologically sort ledger lines.

The ledger file is the only state that outlives a run. :func:`merge_lines` is a
pure function from (previous lines, new lines) to the next ledger contents;
file access is kept to :func:`read_ledger` / :func:`write_ledger`, used by the
CLI.

Deduplication is exact string equality on the trimmed line. A record whose fee
or price changed between two exports therefore survives as two lines; no
reconciliation is attempted.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import date
from os import PathLike
from pathlib import Path

from .errors import MalformedOutputLine
from .logging_setup import get_logger

_logger = get_logger("cgt_ingest.ledger")


def line_date(line: str) -> date:
    """Return the calendar date held in the second token of ``line``."""

    tokens = line.split()
    if len(tokens) < 2:
        raise MalformedOutputLine(f"no date token in line {line!r}", field="date")
    parts = tokens[1].split("/")
    if len(parts) != 3 or not all(p.isdigit() for p in parts) or len(parts[2]) != 4:
        raise MalformedOutputLine(f"date token is not DD/MM/YYYY in line {line!r}", field="date")
    day, month, year = (int(p) for p in parts)
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise MalformedOutputLine(f"invalid calendar date in line {line!r}", field="date") from exc


def _clean(lines: Iterable[str]) -> Iterable[str]:
    for line in lines:
        if not isinstance(line, str):
            continue
        stripped = line.strip()
        if stripped:
            yield stripped


def merge_lines(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    """Union ``existing`` and ``new`` and order the result by date.

    Blank lines are dropped and exact duplicates collapse to their first
    occurrence. The sort is stable, so same-day lines keep their relative
    order (existing lines before new ones). A single line without a parsable
    date aborts the merge with ``MalformedOutputLine``.
    """

    merged = list(dict.fromkeys([*_clean(existing), *_clean(new)]))
    keyed = [(line_date(line), line) for line in merged]
    keyed.sort(key=lambda pair: pair[0])
    return [line for _, line in keyed]


def read_ledger(path: str | PathLike[str]) -> list[str]:
    p = Path(path)
    if not p.exists():
        return []
    with p.open(encoding="utf-8") as f:
        return list(_clean(f))


def write_ledger(path: str | PathLike[str], lines: Iterable[str]) -> None:
    """Write ``lines`` newline-terminated; ``.tmp`` first, then ``os.replace``."""

    p = Path(path)
    content = "".join(f"{line}\n" for line in lines)
    tmp = p.with_name(p.name + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        f.write(content)
    os.replace(tmp, p)
    _logger.debug("wrote %d lines to %s", content.count("\n"), p)


__all__ = ["line_date", "merge_lines", "read_ledger", "write_ledger"]
