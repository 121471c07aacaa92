"""Decoding helpers for raw dealing-advice emails.

Broker notification emails arrive as quoted-printable HTML. Field extraction
runs on plain text, so the raw message goes through two composable steps:

- :func:`decode_quoted_printable`: drop soft line breaks, expand ``=XX``.
- :func:`strip_html`: extract the text nodes with BeautifulSoup, one space
  between adjacent nodes, then collapse whitespace.

The transport-level ``Date:`` header is read from the raw message (before
decoding) by :func:`transport_date_header`.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from ..errors import UnrecognizedContent

_SOFT_BREAK_RE = re.compile(r"=\r?\n")
_HEX_ESCAPE_RE = re.compile(r"=([0-9A-Fa-f]{2})")
_ESCAPE_RUN_RE = re.compile(r"(?:=[0-9A-Fa-f]{2})+")
_WS_RE = re.compile(r"\s+")
_DATE_HEADER_RE = re.compile(r"^Date:[ \t]*(.+?)\s*$", re.MULTILINE)
_HEADER_END_RE = re.compile(r"\r?\n\r?\n")


def _decode_escape_run(m: re.Match[str]) -> str:
    raw = bytes(int(h, 16) for h in _HEX_ESCAPE_RE.findall(m.group(0)))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def decode_quoted_printable(text: str) -> str:
    """Remove soft line breaks and expand ``=XX`` escapes.

    Adjacent escapes are decoded together as UTF-8 so ``=C2=A3`` yields
    ``£``; a run that is not valid UTF-8 maps byte-for-byte to characters.
    """

    text = _SOFT_BREAK_RE.sub("", text)
    return _ESCAPE_RUN_RE.sub(_decode_escape_run, text)


def strip_html(html: str) -> str:
    """Reduce HTML to single-spaced plain text.

    Raises ``UnrecognizedContent`` when nothing but markup and whitespace was
    present.
    """

    # Separate cells so "<td>Security:</td><td>Gold</td>" keeps its labels apart.
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    text = _WS_RE.sub(" ", text).strip()
    if not text:
        raise UnrecognizedContent("email body is empty after HTML stripping", field="body")
    return text


def decode_email_body(raw: str) -> str:
    return strip_html(decode_quoted_printable(raw))


def transport_date_header(raw: str) -> str | None:
    """Return the first ``Date:`` header value of a raw message, if any."""

    headers = _HEADER_END_RE.split(raw, maxsplit=1)[0]
    m = _DATE_HEADER_RE.search(headers)
    return m.group(1) if m else None


__all__ = [
    "decode_email_body",
    "decode_quoted_printable",
    "strip_html",
    "transport_date_header",
]
