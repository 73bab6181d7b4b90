"""Body decoding, text repair and tolerant HTML parsing.

Deterministic and site-agnostic; shared by the fetch and extraction stages.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Mapping, Optional

import ftfy
from bs4 import BeautifulSoup
from charset_normalizer import from_bytes

__all__ = [
    "decode_bytes_auto",
    "is_textual_content_type",
    "minimal_text_fix",
    "parse_html",
]

_ZERO_WIDTH = {0x200B, 0x200C, 0x200D, 0x2060, 0xFEFF}
_REMOVE = {0x00, 0x0B, 0x0C}
_C1_TO_SPACE = {cp: " " for cp in range(0x80, 0xA0)}
_TRANSLATE = {**{cp: None for cp in _ZERO_WIDTH | _REMOVE}, **_C1_TO_SPACE}

_TEXTUAL_TYPES = ("text/", "html", "xml", "json", "javascript")


def _header(headers: Optional[Mapping[str, str]], name: str) -> str:
    if not headers:
        return ""
    value = headers.get(name)
    if value:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return ""


def is_textual_content_type(headers: Optional[Mapping[str, str]]) -> bool:
    """True when the response should be decoded to text (missing type counts)."""

    ct = _header(headers, "content-type").lower()
    if not ct:
        return True
    return any(token in ct for token in _TEXTUAL_TYPES)


def decode_bytes_auto(body: bytes, headers: Optional[Mapping[str, str]] = None) -> str:
    """Decode HTTP bytes using charset header hints with charset-normalizer fallback."""

    if not body:
        return ""
    enc = None
    match = re.search(r"charset=([^\s;]+)", _header(headers, "content-type"), re.I)
    if match:
        enc = match.group(1).strip(' "\'').lower()
    if enc:
        try:
            return body.decode(enc, errors="replace")
        except LookupError:
            pass
    result = from_bytes(body).best()
    if result is None:
        return body.decode("utf-8", errors="replace")
    return str(result)


def minimal_text_fix(text: Optional[str]) -> str:
    """Fix mojibake and strip zero-width/control noise without collapsing structure."""

    if not text:
        return ""
    normalized = unicodedata.normalize("NFC", text)
    fixed = ftfy.fix_text(normalized, normalization="NFC")
    return fixed.translate(_TRANSLATE)


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup with the first parser that accepts it."""

    for parser in ("lxml", "html.parser"):
        try:
            return BeautifulSoup(html or "", parser)
        except Exception:
            continue
    return BeautifulSoup("", "html.parser")
