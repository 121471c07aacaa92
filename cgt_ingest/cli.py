"""CLI for the ``cgt_ingest`` package.

Typer-based console interface around the core: read a broker export (a CSV
file, or a folder of ``.eml`` files for email sources), parse and format it,
merge the lines into the ledger file and print a short summary. Environment
variables are loaded from a local ``.env`` with ``python-dotenv`` before
settings are resolved. Business logic lives in
:mod:`cgt_ingest.normalizers` and :mod:`cgt_ingest.ledger`.

Any ingest failure prints ``Error: ...`` to stderr, exits with status 1 and
leaves the ledger untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from .errors import IngestError
from .ledger import merge_lines, read_ledger, write_ledger
from .logging_setup import configure_logging, get_logger
from .normalizers import EMAIL_SOURCES, canonical_source, get_parser
from .settings import IngestSettings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Normalize broker exports into a chronologically sorted CGT ledger.",
)

_logger = get_logger("cgt_ingest.cli")

SAMPLE_SIZE = 5


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _read_content(source: str, path: Path) -> str | dict[str, str]:
    """Load raw content for ``source``: CSV text, or ``{file name: email}``."""

    if source in EMAIL_SOURCES:
        if not path.is_dir():
            raise NotADirectoryError(f"{source} expects a folder of .eml files: {path}")
        emails = {
            p.name: p.read_text(encoding="utf-8", errors="replace")
            for p in sorted(path.glob("*.eml"))
        }
        _logger.info("found %d email files in %s", len(emails), path)
        return emails
    if not path.is_file():
        raise FileNotFoundError(f"file not found: {path}")
    return path.read_text(encoding="utf-8")


def _print_summary(console: Console, new_count: int, lines: list[str]) -> None:
    console.print(f"Successfully parsed {new_count} new transactions", highlight=False)
    console.print(
        f"Total transactions: {len(lines)} (all sorted chronologically)", highlight=False
    )
    console.print("Sample output:", highlight=False)
    for line in lines[:SAMPLE_SIZE]:
        console.print(line, markup=False, highlight=False, soft_wrap=True)
    if len(lines) > SAMPLE_SIZE:
        console.print(f"... and {len(lines) - SAMPLE_SIZE} more transactions", highlight=False)


def cmd_ingest(
    source: str,
    path: Path,
    *,
    ledger: Path | None = None,
    dry_run: bool = False,
    skip_unrecognized: bool = False,
    settings: IngestSettings | None = None,
    console: Console | None = None,
) -> int:
    """Parse ``path`` as ``source`` and merge the result into ``ledger``.

    Returns the process exit code. Nothing is written unless every input unit
    parsed and the merged ledger sorted cleanly.
    """

    console = console or Console()
    try:
        settings = settings or IngestSettings.from_env()
        tag = canonical_source(source)
        options = {"skip_unrecognized": skip_unrecognized} if tag in EMAIL_SOURCES else {}
        parser = get_parser(tag, settings, **options)

        content = _read_content(tag, path)
        new_lines = parser.parse_to_lines(content)

        ledger_path = ledger or settings.ledger_path
        merged = merge_lines(read_ledger(ledger_path), new_lines)
        if not dry_run:
            write_ledger(ledger_path, merged)
    except (IngestError, OSError, ValueError) as e:
        raise _fail(str(e)) from e

    _print_summary(console, len(new_lines), merged)
    return 0


def cmd_merge(ledger: Path, others: list[Path], *, console: Console | None = None) -> int:
    """Merge further ledger files into ``ledger`` (dedup + chronological sort)."""

    console = console or Console()
    try:
        incoming: list[str] = []
        for other in others:
            if not other.is_file():
                raise FileNotFoundError(f"file not found: {other}")
            incoming.extend(read_ledger(other))
        existing = read_ledger(ledger)
        merged = merge_lines(existing, incoming)
        write_ledger(ledger, merged)
    except (IngestError, OSError) as e:
        raise _fail(str(e)) from e

    console.print(
        f"Merged {len(others)} file(s): {len(merged)} lines ({len(merged) - len(existing)} added)",
        highlight=False,
    )
    return 0


@app.command("ingest")
def ingest_cmd(
    source: Annotated[str, typer.Argument(help="freetrade, ii, fidelity or bullionvault")],
    path: Annotated[Path, typer.Argument(help="CSV file, or folder of .eml files")],
    ledger: Annotated[
        Path | None,
        typer.Option("--ledger", help="Ledger file to merge into (default: CGT_INGEST_LEDGER or data.txt)."),
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Parse and merge but do not write the ledger.")
    ] = False,
    skip_unrecognized: Annotated[
        bool,
        typer.Option(
            "--skip-unrecognized",
            help="Email sources: skip messages without a deal summary instead of failing.",
        ),
    ] = False,
) -> None:
    """Parse a broker export and merge it into the ledger."""

    cmd_ingest(source, path, ledger=ledger, dry_run=dry_run, skip_unrecognized=skip_unrecognized)


@app.command("merge")
def merge_cmd(
    ledger: Annotated[Path, typer.Argument(help="Ledger file to update in place.")],
    others: Annotated[list[Path], typer.Argument(help="Ledger files to merge in.")],
) -> None:
    """Merge other ledger files into LEDGER."""

    cmd_merge(ledger, others)


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (default: CGT_INGEST_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
