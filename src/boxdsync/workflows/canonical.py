"""Chase short links, member links and canonical hints to the real film page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .html_hints import extract_canonical_url_from_html
from .request import Transport, fetch_text
from .sync_config import DEFAULT_MAX_REDIRECTS, MAX_CANONICAL_ATTEMPTS
from .url_utils import normalize_film_url

logger = logging.getLogger(__name__)


class CanonicalResolutionError(RuntimeError):
    def __init__(self, original_url: str, last_fetched_url: str) -> None:
        super().__init__(
            f"Unable to resolve canonical film page for {original_url} (last fetched {last_fetched_url})"
        )
        self.original_url = original_url
        self.last_fetched_url = last_fetched_url


@dataclass(frozen=True)
class ResolvedPage:
    canonical_url: str
    html: str


def _canonical_candidate(fetched_url: str, html: str) -> Optional[str]:
    from_url = normalize_film_url(fetched_url)
    if from_url:
        return from_url
    hint = extract_canonical_url_from_html(html, fetched_url)
    if hint:
        return normalize_film_url(hint) or hint
    return None


async def resolve_canonical_page(
    url: str,
    transport: Transport,
    *,
    max_attempts: int = MAX_CANONICAL_ATTEMPTS,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> ResolvedPage:
    """Fetch until the page we landed on is its own canonical address.

    Each attempt follows HTTP redirects, then derives a canonical candidate
    from the final URL or, failing that, from the page's canonical hints. A
    candidate that differs from what was fetched becomes the next target.
    Raises CanonicalResolutionError once ``max_attempts`` fetches have not
    converged; fetch errors propagate unchanged.
    """

    target = normalize_film_url(url) or url
    last_fetched = url
    for attempt in range(1, max_attempts + 1):
        fetched = await fetch_text(transport, target, max_redirects=max_redirects)
        last_fetched = fetched.url
        candidate = _canonical_candidate(fetched.url, fetched.text)
        if candidate and candidate != fetched.url:
            logger.debug(
                "Resolved %s to canonical %s, refetching (attempt %d/%d)",
                fetched.url,
                candidate,
                attempt,
                max_attempts,
            )
            target = candidate
            continue
        return ResolvedPage(canonical_url=candidate or fetched.url, html=fetched.text)
    raise CanonicalResolutionError(url, last_fetched)


__all__ = [
    "CanonicalResolutionError",
    "ResolvedPage",
    "resolve_canonical_page",
]
