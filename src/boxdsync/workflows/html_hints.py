"""Markup-level fallbacks for when structured data is silent."""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup

from .html_normalize import minimal_text_fix, parse_html
from .url_utils import ensure_absolute_url


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    for tag in soup.find_all("meta", attrs={attr: value}):
        content = (tag.get("content") or "").strip()
        if content:
            return content
    return None


def _canonical_href(soup: BeautifulSoup) -> Optional[str]:
    for tag in soup.find_all("link", rel="canonical"):
        href = (tag.get("href") or "").strip()
        if href:
            return href
    return None


def extract_description_from_html(html: Optional[str]) -> Optional[str]:
    """Synopsis from ``og:description``, else ``<meta name="description">``."""

    if not html:
        return None
    soup = parse_html(html)
    for attr, value in (("property", "og:description"), ("name", "description")):
        content = _meta_content(soup, attr, value)
        if content:
            return minimal_text_fix(content).strip() or None
    return None


def extract_canonical_url_from_html(html: Optional[str], base_url: str = "") -> Optional[str]:
    """Absolute URL from ``<link rel="canonical">``, else ``og:url``."""

    if not html:
        return None
    soup = parse_html(html)
    candidates = (_canonical_href(soup), _meta_content(soup, "property", "og:url"))
    for candidate in candidates:
        resolved = ensure_absolute_url(candidate, base_url)
        if resolved:
            return resolved
    return None


__all__ = [
    "extract_canonical_url_from_html",
    "extract_description_from_html",
]
