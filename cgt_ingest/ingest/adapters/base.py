"""Common contract for broker source adapters.

Every adapter turns raw content into canonical records through ``parse`` and
renders records through ``format``. CSV adapters implement ``parse_row`` only:
the shared loop reads the text, checks the header, and attributes any
:class:`~cgt_ingest.errors.IngestError` to the row that raised it. Returning
``None`` from ``parse_row`` means "not applicable" (cash movement, zero
quantity, ...) and is logged at DEBUG, never raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from ...ctv import CanonicalTransaction
from ...errors import IngestError
from ...formatting import format_transaction
from ...logging_setup import get_logger
from ...settings import IngestSettings
from ..utils import CsvRow, read_csv_rows, require_columns

_logger = get_logger("cgt_ingest.ingest.adapters")


class BrokerParser(ABC):
    source: ClassVar[str]

    def __init__(self, settings: IngestSettings | None = None) -> None:
        self.settings = settings or IngestSettings()

    @abstractmethod
    def parse(self, content: Any) -> list[CanonicalTransaction]:
        """Parse one content unit; fail on the first invalid row or email."""

    def format(self, tx: CanonicalTransaction) -> str:
        return format_transaction(tx)

    def parse_to_lines(self, content: Any) -> list[str]:
        return [self.format(tx) for tx in self.parse(content)]

    def _skip(self, unit: str, reason: str) -> None:
        _logger.debug("%s %s skipped: %s", self.source, unit, reason)
        return None


class CsvBrokerParser(BrokerParser):
    required_columns: ClassVar[frozenset[str]]
    # First cell of the real header line when the export has a preamble.
    header_start: ClassVar[str | None] = None

    def parse(self, content: str) -> list[CanonicalTransaction]:
        headers, rows = read_csv_rows(content, source=self.source, header_start=self.header_start)
        require_columns(headers, self.required_columns, source=self.source)

        out: list[CanonicalTransaction] = []
        for row in rows:
            try:
                tx = self.parse_row(row)
            except IngestError as e:
                if e.unit is None:
                    e.unit = f"{self.source} {row.unit}"
                raise
            if tx is not None:
                out.append(tx)

        _logger.info(
            "%s: %d transactions from %d rows (%d skipped)",
            self.source,
            len(out),
            len(rows),
            len(rows) - len(out),
        )
        return out

    @abstractmethod
    def parse_row(self, row: CsvRow) -> CanonicalTransaction | None:
        """Map one row to a record, or ``None`` when the row is not a trade event."""


__all__ = ["BrokerParser", "CsvBrokerParser"]
