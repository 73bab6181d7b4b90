"""Structured movie metadata from a page's JSON-LD block.

The payload is untyped JSON whose fields may be absent, a single string, a
single object or an array mixing both. Everything is normalized here into
:class:`JsonLdMetadata`; nothing downstream sees the raw shape.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .html_normalize import minimal_text_fix, parse_html
from .sync_config import JSON_LD_SCRIPT_TYPE, MOVIE_TYPE
from .url_utils import UniqueList, ensure_absolute_url

logger = logging.getLogger(__name__)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


class JsonLdParseError(ValueError):
    """The structured-data block exists but is not valid JSON."""


@dataclass
class JsonLdMetadata:
    poster_url: Optional[str] = None
    description: Optional[str] = None
    directors: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    cast: List[str] = field(default_factory=list)
    movie_url: Optional[str] = None
    average_rating: Optional[str] = None
    studios: List[str] = field(default_factory=list)
    countries: List[str] = field(default_factory=list)


def _as_list(value: Any) -> List[Any]:
    if not value:
        return []
    return list(value) if isinstance(value, list) else [value]


def extract_names(value: Any) -> List[str]:
    """Names from bare strings or ``{"name": ...}`` objects, deduplicated in order.

    Covers Person, Organization and Country entries alike.
    """

    names = UniqueList()
    for entry in _as_list(value):
        if isinstance(entry, str):
            names.add(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            names.add(entry["name"])
    return names.to_list()


def extract_strings(value: Any) -> List[str]:
    return UniqueList(entry for entry in _as_list(value) if isinstance(entry, str)).to_list()


def extract_rating_value(value: Any) -> Optional[str]:
    """``aggregateRating.ratingValue`` as a string; numbers keep their short form."""

    if not isinstance(value, dict):
        return None
    rating = value.get("ratingValue")
    if isinstance(rating, bool):
        return None
    if isinstance(rating, float) and rating.is_integer():
        return str(int(rating))
    if isinstance(rating, (int, float)):
        return str(rating)
    if isinstance(rating, str):
        return rating.strip() or None
    return None


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def load_json_ld_payload(html: str) -> Any:
    """Return the decoded JSON-LD payload, or None when the page has none.

    Raises JsonLdParseError when the block is present but malformed.
    """

    soup = parse_html(html)
    script = soup.find(
        "script",
        attrs={"type": lambda value: bool(value) and value.strip().lower() == JSON_LD_SCRIPT_TYPE},
    )
    if script is None:
        logger.warning("No JSON-LD script tag found on page")
        return None
    raw = script.string if script.string is not None else script.get_text()
    sanitized = _BLOCK_COMMENT_RE.sub("", raw or "").strip()
    if not sanitized:
        logger.warning("JSON-LD script tag was empty after sanitization")
        return None
    try:
        return json.loads(sanitized)
    except json.JSONDecodeError as exc:
        raise JsonLdParseError(f"Failed to parse JSON-LD data: {exc}") from exc


def _select_movie_node(payload: Any) -> Any:
    if isinstance(payload, list):
        for item in payload:
            if isinstance(item, dict) and item.get("@type") == MOVIE_TYPE:
                return item
        return payload[0] if payload else None
    return payload


def parse_json_ld(html: str, base_url: str) -> Optional[JsonLdMetadata]:
    """Extract movie metadata; None when the page has no usable JSON-LD.

    Malformed JSON is logged and reported as None so callers can fall back
    to markup hints. The cast list is returned untruncated.
    """

    if not html:
        return None
    try:
        payload = load_json_ld_payload(html)
    except JsonLdParseError as exc:
        logger.warning("%s", exc)
        return None
    data = _select_movie_node(payload)
    if not isinstance(data, dict):
        if payload is not None:
            logger.warning("JSON-LD content was not an object or array")
        return None

    description = data.get("description")
    image = data.get("image")
    url = data.get("url")
    return JsonLdMetadata(
        poster_url=ensure_absolute_url(image if isinstance(image, str) else None, base_url),
        description=minimal_text_fix(description).strip() if isinstance(description, str) else None,
        directors=extract_names(_first_present(data, "director", "directors")),
        genres=extract_strings(data.get("genre")),
        cast=extract_names(_first_present(data, "actors", "actor", "cast")),
        movie_url=ensure_absolute_url(url if isinstance(url, str) else None, base_url),
        average_rating=extract_rating_value(data.get("aggregateRating")),
        studios=extract_names(data.get("productionCompany")),
        countries=extract_names(data.get("countryOfOrigin")),
    )


__all__ = [
    "JsonLdMetadata",
    "JsonLdParseError",
    "extract_names",
    "extract_rating_value",
    "extract_strings",
    "load_json_ld_payload",
    "parse_json_ld",
]
