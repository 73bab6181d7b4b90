"""Fetch stage: poster URL, metadata and canonical link for one film entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .canonical import CanonicalResolutionError, resolve_canonical_page
from .html_hints import extract_description_from_html
from .json_ld import parse_json_ld
from .request import NETWORK_ERRORS, Transport, fetch_bytes
from .sync_config import CAST_LIMIT, DEFAULT_MAX_REDIRECTS, MAX_CANONICAL_ATTEMPTS
from .url_utils import UniqueList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovieMetadata:
    """Normalized film metadata; list fields never hold duplicates or blanks."""

    description: str = ""
    directors: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    cast: Tuple[str, ...] = ()
    average_rating: Optional[str] = None
    studios: Tuple[str, ...] = ()
    countries: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("directors", "genres", "cast", "studios", "countries"):
            object.__setattr__(self, name, tuple(UniqueList(getattr(self, name))))


@dataclass(frozen=True)
class MoviePageData:
    poster_url: Optional[str]
    metadata: MovieMetadata
    movie_url: Optional[str]

    @property
    def is_empty(self) -> bool:
        return self.poster_url is None and self.movie_url is None and self.metadata == MovieMetadata()


def empty_page_data() -> MoviePageData:
    return MoviePageData(poster_url=None, metadata=MovieMetadata(), movie_url=None)


async def fetch_movie_page_data(
    uri: str,
    transport: Transport,
    *,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    max_attempts: int = MAX_CANONICAL_ATTEMPTS,
) -> MoviePageData:
    """Resolve ``uri`` to its canonical film page and extract its metadata.

    The link may be a short link, a member/diary link or the canonical page.
    Network and resolution failures are logged and yield the empty sentinel
    rather than raising.
    """

    try:
        page = await resolve_canonical_page(
            uri,
            transport,
            max_attempts=max_attempts,
            max_redirects=max_redirects,
        )
    except NETWORK_ERRORS + (CanonicalResolutionError,) as exc:
        logger.error("Error fetching data from %s: %s", uri, exc)
        return empty_page_data()

    json_ld = parse_json_ld(page.html, page.canonical_url)
    if json_ld is None:
        logger.warning("JSON-LD metadata missing for %s", page.canonical_url)

    description = (json_ld.description if json_ld else None) or ""
    if not description.strip():
        fallback = extract_description_from_html(page.html)
        if fallback:
            logger.debug("Using fallback meta description from HTML")
            description = fallback

    poster_url = json_ld.poster_url if json_ld else None
    if poster_url:
        logger.debug("Poster URL from JSON-LD: %s", poster_url)
    else:
        logger.warning("JSON-LD metadata missing poster image for %s", page.canonical_url)

    movie_url = (json_ld.movie_url if json_ld else None) or page.canonical_url
    if json_ld is None:
        return MoviePageData(
            poster_url=None,
            metadata=MovieMetadata(description=description.strip()),
            movie_url=movie_url,
        )
    metadata = MovieMetadata(
        description=description.strip(),
        directors=tuple(json_ld.directors),
        genres=tuple(json_ld.genres),
        cast=tuple(json_ld.cast[:CAST_LIMIT]),
        average_rating=json_ld.average_rating,
        studios=tuple(json_ld.studios),
        countries=tuple(json_ld.countries),
    )
    return MoviePageData(poster_url=poster_url, metadata=metadata, movie_url=movie_url)


async def download_poster(
    url: str,
    transport: Transport,
    *,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> Optional[bytes]:
    """Poster bytes, or None when the download fails or comes back empty."""

    try:
        result = await fetch_bytes(transport, url, max_redirects=max_redirects)
    except NETWORK_ERRORS as exc:
        logger.error("Error downloading poster %s: %s", url, exc)
        return None
    return result.content or None


__all__ = [
    "MovieMetadata",
    "MoviePageData",
    "download_poster",
    "empty_page_data",
    "fetch_movie_page_data",
]
