"""Assemble a film note and merge it with an existing one.

Every function here is pure: identical inputs give byte-identical notes,
which is what makes repeated imports idempotent.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from ..core.keys import (
    K_AVERAGE_RATING,
    K_CAST,
    K_COUNTRIES,
    K_COVER,
    K_DATE,
    K_DESCRIPTION,
    K_DIRECTORS,
    K_GENRES,
    K_LETTERBOXD,
    K_POSTER_PATH,
    K_POSTER_URL,
    K_RATING,
    K_REWATCH,
    K_STATUS,
    K_STUDIOS,
    K_TAGS,
    K_TITLE,
    K_WATCHED,
    K_YEAR,
)
from .page_data import MovieMetadata
from .rows import SourceRow
from .settings import FieldPolicy
from .sync_config import NOTES_MARKER, SITE_HOSTS
from .template import render_template
from .url_utils import normalize_site_url

_YAML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")
_INVALID_FILENAME_RE = re.compile(r'[\\/:*?"<>|]')
_NEEDS_QUOTES_RE = re.compile(r"[\\\"\n\r\t]|: | #|^[\s\-?:,\[\]{}#&*!|>'%@`]|\s$")
_NOTES_MARKER_RE = re.compile(rf"^{re.escape(NOTES_MARKER)}\b", re.MULTILINE)


def escape_yaml_value(value: str) -> str:
    """Escape backslashes, quotes and control whitespace so the value stays on one line."""

    return "".join(_YAML_ESCAPES.get(ch, ch) for ch in value)


def escape_yaml_string(value: str) -> str:
    return f'"{escape_yaml_value(value)}"'


def _scalar(value: str) -> str:
    return value if _NUMERIC_RE.match(value) else escape_yaml_string(value)


def _plain(value: str) -> str:
    """Leave URLs, dates and labels bare unless they could break the line."""

    return escape_yaml_string(value) if _NEEDS_QUOTES_RE.search(value) else value


def sanitize_file_name(name: str) -> str:
    cleaned = _INVALID_FILENAME_RE.sub("-", name or "")
    return re.sub(r"\s+", " ", cleaned).strip()


def _metadata_fields(metadata: Optional[MovieMetadata], fields: FieldPolicy) -> Dict[str, Any]:
    """Policy-filtered metadata; disabled categories are left out entirely."""

    if metadata is None:
        return {}
    selected: Dict[str, Any] = {}
    if fields.include_description:
        selected[K_DESCRIPTION] = metadata.description.strip() or None
    if fields.include_average_rating:
        selected[K_AVERAGE_RATING] = metadata.average_rating or None
    if fields.include_directors:
        selected[K_DIRECTORS] = list(metadata.directors)
    if fields.include_genres:
        selected[K_GENRES] = list(metadata.genres)
    if fields.include_cast:
        selected[K_CAST] = list(metadata.cast)
    if fields.include_studios:
        selected[K_STUDIOS] = list(metadata.studios)
    if fields.include_countries:
        selected[K_COUNTRIES] = list(metadata.countries)
    return selected


def _cover_reference(poster_path: Optional[str], poster_link: Optional[str]) -> Optional[str]:
    if poster_path:
        return f"[[{poster_path}]]"
    return poster_link or None


def _poster_line(row: SourceRow, poster_path: Optional[str], poster_link: Optional[str]) -> Optional[str]:
    if poster_path:
        return f"![[{poster_path}]]"
    if poster_link:
        return f"![{row.title} Poster]({poster_link})"
    return None


def build_template_context(
    row: SourceRow,
    *,
    poster_path: Optional[str] = None,
    metadata: Optional[MovieMetadata] = None,
    resolved_url: Optional[str] = None,
    poster_link: Optional[str] = None,
    status: Optional[str] = None,
    fields: FieldPolicy = FieldPolicy(),
    site_hosts: Sequence[str] = tuple(SITE_HOSTS),
) -> Dict[str, Any]:
    """Flattened view of one note's data, shared by both layouts.

    Blank strings become None so conditionals treat them as unset.
    """

    def text(value: Optional[str]) -> Optional[str]:
        return value.strip() if value and value.strip() else None

    source_url = resolved_url or row.uri
    context: Dict[str, Any] = {
        K_TITLE: row.title,
        K_YEAR: text(row.year),
        K_LETTERBOXD: normalize_site_url(source_url, site_hosts) if source_url else None,
        K_STATUS: text(status),
        K_RATING: text(row.rating),
        K_REWATCH: row.is_rewatch,
        K_DATE: text(row.date),
        K_WATCHED: text(row.watched_date),
        K_TAGS: row.tag_list,
        K_COVER: _cover_reference(poster_path, poster_link),
        K_POSTER_PATH: poster_path or None,
        K_POSTER_URL: poster_link or None,
    }
    context.update(_metadata_fields(metadata, fields))
    return context


def _yaml_list(lines: List[str], key: str, values: Sequence[str]) -> None:
    if not values:
        return
    lines.append(f"{key}:")
    for value in values:
        lines.append(f"  - {escape_yaml_string(value)}")


def _render_default(row: SourceRow, context: Dict[str, Any]) -> str:
    lines: List[str] = ["---"]
    lines.append(f"{K_TITLE}: {escape_yaml_string(row.title)}")
    if context[K_YEAR]:
        lines.append(f"{K_YEAR}: {_scalar(context[K_YEAR])}")
    if context[K_LETTERBOXD]:
        lines.append(f"{K_LETTERBOXD}: {_plain(context[K_LETTERBOXD])}")
    if context[K_STATUS]:
        lines.append(f"{K_STATUS}: {_plain(context[K_STATUS])}")
    if context[K_RATING]:
        lines.append(f"{K_RATING}: {_scalar(context[K_RATING])}")
    if context[K_REWATCH]:
        lines.append(f"{K_REWATCH}: true")
    if context[K_WATCHED]:
        lines.append(f"{K_WATCHED}: {_plain(context[K_WATCHED])}")
    _yaml_list(lines, K_TAGS, context[K_TAGS])
    if context[K_COVER]:
        lines.append(f"{K_COVER}: {escape_yaml_string(context[K_COVER])}")
    if context.get(K_DESCRIPTION):
        lines.append(f"{K_DESCRIPTION}: {escape_yaml_string(context[K_DESCRIPTION])}")
    if context.get(K_AVERAGE_RATING):
        lines.append(f"{K_AVERAGE_RATING}: {_scalar(context[K_AVERAGE_RATING])}")
    for key in (K_DIRECTORS, K_GENRES, K_CAST, K_STUDIOS, K_COUNTRIES):
        _yaml_list(lines, key, context.get(key) or [])
    lines.append("---")
    lines.append("")

    poster = _poster_line(row, context[K_POSTER_PATH], context[K_POSTER_URL])
    if poster:
        lines.append(poster)
        lines.append("")

    lines.append(NOTES_MARKER)
    lines.append("")
    return "\n".join(lines) + "\n"


def _escape_context(context: Dict[str, Any]) -> Dict[str, Any]:
    escaped: Dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, str):
            escaped[key] = escape_yaml_value(value)
        elif isinstance(value, list):
            escaped[key] = [escape_yaml_value(v) if isinstance(v, str) else v for v in value]
        else:
            escaped[key] = value
    return escaped


def generate_movie_note(
    row: SourceRow,
    *,
    poster_path: Optional[str] = None,
    metadata: Optional[MovieMetadata] = None,
    resolved_url: Optional[str] = None,
    poster_link: Optional[str] = None,
    status: Optional[str] = None,
    fields: FieldPolicy = FieldPolicy(),
    template: Optional[str] = None,
    site_hosts: Sequence[str] = tuple(SITE_HOSTS),
) -> str:
    """Render the note for ``row``.

    ``poster_path`` (a stored asset) wins over ``poster_link`` (remote URL).
    The canonical link is ``resolved_url`` when known, else the row's own
    link, normalized only for the tracked site's hosts. With ``template``
    set, the template is rendered against the escaped flattened context
    instead of the built-in layout.
    """

    context = build_template_context(
        row,
        poster_path=poster_path,
        metadata=metadata,
        resolved_url=resolved_url,
        poster_link=poster_link,
        status=status,
        fields=fields,
        site_hosts=site_hosts,
    )
    if template:
        return render_template(template, _escape_context(context))
    return _render_default(row, context)


def extract_notes_section(content: str) -> Optional[str]:
    """Everything from the notes heading onward, or None when no line starts with it."""

    match = _NOTES_MARKER_RE.search(content or "")
    if match is None:
        return None
    return content[match.start():]


def merge_with_existing_notes(new_content: str, existing_section: Optional[str]) -> str:
    """Splice a preserved notes section into freshly generated content."""

    if not existing_section:
        return new_content
    match = _NOTES_MARKER_RE.search(new_content)
    if match is None:
        return new_content.rstrip() + "\n\n" + existing_section
    return new_content[:match.start()] + existing_section


__all__ = [
    "build_template_context",
    "escape_yaml_string",
    "escape_yaml_value",
    "extract_notes_section",
    "generate_movie_note",
    "merge_with_existing_notes",
    "sanitize_file_name",
]
