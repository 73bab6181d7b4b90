"""URL helpers and the ordered-unique container shared by the pipeline."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional
from urllib.parse import urljoin, urlparse

from .sync_config import FILM_PATH_MARKER, SITE_HOSTS

logger = logging.getLogger(__name__)


def normalize_film_url(url: str) -> Optional[str]:
    """Map any film link to its canonical ``scheme://host/film/<slug>/`` form.

    Member-scoped links (``/<user>/film/<slug>/...``) and deep links
    (``/film/<slug>/reviews/``) collapse to the same address. Returns None
    when the URL cannot be parsed or carries no film segment.
    """

    try:
        parsed = urlparse((url or "").strip())
    except ValueError:
        logger.debug("Unparseable film URL %r", url)
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    segments = [segment for segment in parsed.path.split("/") if segment]
    try:
        marker = segments.index(FILM_PATH_MARKER)
    except ValueError:
        return None
    if marker + 1 >= len(segments):
        return None
    slug = segments[marker + 1]
    return f"{parsed.scheme}://{parsed.netloc.lower()}/{FILM_PATH_MARKER}/{slug}/"


def is_site_url(url: str, site_hosts: Iterable[str] = SITE_HOSTS) -> bool:
    try:
        host = (urlparse((url or "").strip()).hostname or "").lower()
    except ValueError:
        return False
    return bool(host) and host in {h.lower() for h in site_hosts}


def normalize_site_url(url: str, site_hosts: Iterable[str] = SITE_HOSTS) -> str:
    """Best-effort canonicalization restricted to the tracked site.

    Links to any other host pass through unchanged.
    """

    if not is_site_url(url, site_hosts):
        return url
    return normalize_film_url(url) or url


def ensure_absolute_url(value: Optional[str], base_url: str) -> Optional[str]:
    """Resolve ``value`` against ``base_url``; None for empty or unresolvable input."""

    if not value or not value.strip():
        return None
    try:
        resolved = urljoin(base_url or "", value.strip())
        parsed = urlparse(resolved)
    except ValueError:
        logger.debug("Failed to resolve URL %r with base %r", value, base_url)
        return None
    if not parsed.scheme:
        return None
    if parsed.scheme in {"http", "https"} and not parsed.netloc:
        return None
    return resolved


class UniqueList:
    """Insertion-ordered set of trimmed, non-empty strings."""

    def __init__(self, values: Iterable[Optional[str]] = ()) -> None:
        self._items: Dict[str, None] = {}
        for value in values:
            self.add(value)

    def add(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        cleaned = value.strip()
        if not cleaned or cleaned in self._items:
            return False
        self._items[cleaned] = None
        return True

    def extend(self, values: Iterable[Optional[str]]) -> None:
        for value in values:
            self.add(value)

    def to_list(self) -> List[str]:
        return list(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __repr__(self) -> str:
        return f"UniqueList({self.to_list()!r})"


__all__ = [
    "UniqueList",
    "ensure_absolute_url",
    "is_site_url",
    "normalize_film_url",
    "normalize_site_url",
]
