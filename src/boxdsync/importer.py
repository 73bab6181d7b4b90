from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from .workflows.note_builder import (
    extract_notes_section,
    generate_movie_note,
    merge_with_existing_notes,
    sanitize_file_name,
)
from .workflows.page_data import download_poster, empty_page_data, fetch_movie_page_data
from .workflows.request import Transport
from .workflows.rows import CsvFormatError, SourceRow, describe_row, identity_keys, parse_rows
from .workflows.settings import ImportSettings
from .workflows.storage import VaultStorage, normalize_path
from .workflows.sync_config import (
    STATUS_WANT_TO_WATCH,
    STATUS_WATCHED,
    WATCHED_SOURCES,
    WATCHLIST_SOURCE,
)
from .workflows.template import compile_template

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

ProgressCallback = Callable[[int, int, str, Optional[str], bool], None]
FileStartCallback = Callable[[str, int, int], None]
CancelPredicate = Callable[[], bool]
Sleeper = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class SourceFile:
    name: str
    content: str
    error: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        """Read an export; an unreadable file becomes a source that reports itself invalid."""

        try:
            return cls(name=path.name, content=path.read_text(encoding="utf-8-sig"))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return cls(name=path.name, content="", error=f"Unreadable file: {exc}")


@dataclass
class SourceReport:
    name: str
    valid: bool = True
    message: str = ""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    excluded: int = 0
    skipped: int = 0


@dataclass
class ImportSummary:
    status: str = STATUS_COMPLETED
    sources: List[SourceReport] = field(default_factory=list)
    elapsed_ms: int = 0

    def _count(self, attr: str) -> int:
        return sum(getattr(report, attr) for report in self.sources)

    @property
    def succeeded(self) -> int:
        return self._count("succeeded")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def excluded(self) -> int:
        return self._count("excluded")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def invalid_sources(self) -> List[str]:
        return [report.name for report in self.sources if not report.valid]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "elapsed_ms": self.elapsed_ms,
            "counts": {
                "succeeded": self.succeeded,
                "failed": self.failed,
                "excluded": self.excluded,
                "skipped": self.skipped,
            },
            "sources": [asdict(report) for report in self.sources],
        }


@dataclass(frozen=True)
class RowResult:
    note_path: str
    poster_url: Optional[str] = None
    poster_path: Optional[str] = None


def determine_status(row: SourceRow, source_name: str) -> str:
    """Status label from the export file a row came from, else from its watched date."""

    name = Path(source_name or "").name.lower()
    if name == WATCHLIST_SOURCE:
        return STATUS_WANT_TO_WATCH
    if name in WATCHED_SOURCES:
        return STATUS_WATCHED
    return STATUS_WATCHED if row.watched_date.strip() else STATUS_WANT_TO_WATCH


def note_path_for(row: SourceRow, settings: ImportSettings) -> str:
    file_name = sanitize_file_name(describe_row(row))
    return normalize_path(f"{settings.output_folder}/{file_name}.md")


def poster_path_for(row: SourceRow, settings: ImportSettings) -> str:
    stem = f"{row.title}_{row.year}" if row.year else row.title
    return normalize_path(f"{settings.poster_folder}/{sanitize_file_name(stem)}.jpg")


async def _store_poster(
    row: SourceRow,
    poster_url: str,
    settings: ImportSettings,
    transport: Transport,
    storage: VaultStorage,
) -> Optional[str]:
    path = poster_path_for(row, settings)
    if storage.exists(path):
        logger.debug("Reusing existing poster %s", path)
        return path
    data = await download_poster(poster_url, transport, max_redirects=settings.max_redirects)
    if not data:
        return None
    storage.ensure_folder(settings.poster_folder)
    storage.create_binary(path, data)
    return path


async def import_row(
    row: SourceRow,
    source_name: str,
    *,
    settings: ImportSettings,
    transport: Transport,
    storage: VaultStorage,
) -> RowResult:
    """Fetch, assemble and write the note for one row.

    Network trouble degrades the note instead of failing it; storage
    errors propagate to the caller.
    """

    if row.uri:
        page = await fetch_movie_page_data(row.uri, transport, max_redirects=settings.max_redirects)
    else:
        logger.warning("No link for %s, writing note without metadata", describe_row(row))
        page = empty_page_data()

    poster_path: Optional[str] = None
    if settings.download_posters and page.poster_url:
        poster_path = await _store_poster(row, page.poster_url, settings, transport, storage)

    content = generate_movie_note(
        row,
        poster_path=poster_path,
        metadata=page.metadata,
        resolved_url=page.movie_url,
        poster_link=page.poster_url,
        status=determine_status(row, source_name),
        fields=settings.fields,
        template=settings.template,
    )

    note_path = note_path_for(row, settings)
    storage.ensure_folder(settings.output_folder)
    if storage.is_file(note_path):
        preserved = extract_notes_section(storage.read_text(note_path))
        content = merge_with_existing_notes(content, preserved)
        logger.debug("Updating existing note %s", note_path)
    storage.write_text(note_path, content)
    return RowResult(note_path=note_path, poster_url=page.poster_url, poster_path=poster_path)


async def import_rows(
    rows: Sequence[SourceRow],
    source_name: str,
    report: SourceReport,
    *,
    settings: ImportSettings,
    transport: Transport,
    storage: VaultStorage,
    exclude: Optional[Set[Tuple[str, str]]] = None,
    on_progress: Optional[ProgressCallback] = None,
    is_cancelled: Optional[CancelPredicate] = None,
    sleep: Sleeper = asyncio.sleep,
) -> bool:
    """Import ``rows`` one at a time into ``report``; returns True when cancelled.

    Rows whose identity key is in ``exclude`` are dropped up front. Every
    row error is logged and counted; nothing escapes the loop.
    """

    pending: List[SourceRow] = []
    for row in rows:
        if exclude and row.identity_key in exclude:
            report.excluded += 1
            continue
        pending.append(row)

    total = len(pending)
    report.total = total
    delay = max(0, settings.rate_limit_delay_ms) / 1000.0
    fetched_before = False
    for index, row in enumerate(pending, start=1):
        if is_cancelled is not None and is_cancelled():
            logger.info("Import cancelled before %s", describe_row(row))
            return True

        if settings.skip_existing and storage.is_file(note_path_for(row, settings)):
            report.skipped += 1
            logger.debug("Skipping existing note for %s", describe_row(row))
            if on_progress is not None:
                on_progress(index, total, row.title, None, True)
            continue

        if fetched_before and delay > 0:
            await sleep(delay)
            if is_cancelled is not None and is_cancelled():
                logger.info("Import cancelled before %s", describe_row(row))
                return True
        fetched_before = True

        poster_url: Optional[str] = None
        try:
            result = await import_row(row, source_name, settings=settings, transport=transport, storage=storage)
            poster_url = result.poster_url
            success = True
            report.succeeded += 1
        except Exception as exc:
            success = False
            report.failed += 1
            logger.error("Failed to import %s: %s", describe_row(row), exc)
        if on_progress is not None:
            on_progress(index, total, row.title, poster_url, success)
    return False


async def run_import(
    sources: Sequence[SourceFile],
    settings: ImportSettings,
    *,
    transport: Transport,
    storage: VaultStorage,
    on_progress: Optional[ProgressCallback] = None,
    on_file_start: Optional[FileStartCallback] = None,
    is_cancelled: Optional[CancelPredicate] = None,
    sleep: Sleeper = asyncio.sleep,
) -> ImportSummary:
    """Import every source in order and summarize the batch.

    A source with a bad header is reported and skipped. A film already
    imported from an earlier source is excluded from later ones. Raises
    TemplateSyntaxError before touching any row when the configured
    template does not compile.
    """

    if settings.template:
        compile_template(settings.template)

    started = time.monotonic()
    summary = ImportSummary()
    seen: Set[Tuple[str, str]] = set()
    for position, source in enumerate(sources, start=1):
        if is_cancelled is not None and is_cancelled():
            summary.status = STATUS_CANCELLED
            break
        if on_file_start is not None:
            on_file_start(source.name, position, len(sources))
        report = SourceReport(name=source.name)
        summary.sources.append(report)
        if source.error:
            report.valid = False
            report.message = source.error
            continue
        try:
            rows = parse_rows(source.content)
        except CsvFormatError as exc:
            report.valid = False
            report.message = str(exc)
            logger.error("Skipping %s: %s", source.name, exc)
            continue

        cancelled = await import_rows(
            rows,
            source.name,
            report,
            settings=settings,
            transport=transport,
            storage=storage,
            exclude=set(seen),
            on_progress=on_progress,
            is_cancelled=is_cancelled,
            sleep=sleep,
        )
        seen.update(identity_keys(rows))
        report.message = f"Imported {report.succeeded} of {report.total} movies"
        if cancelled:
            summary.status = STATUS_CANCELLED
            break

    summary.elapsed_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Import %s: %d succeeded, %d failed in %d ms",
        summary.status,
        summary.succeeded,
        summary.failed,
        summary.elapsed_ms,
    )
    return summary


def render_summary(summary: ImportSummary) -> str:
    lines: List[str] = []
    title = "Import complete" if summary.status == STATUS_COMPLETED else "Import cancelled"
    lines.append(f"{title}: {summary.succeeded} succeeded, {summary.failed} failed ({summary.elapsed_ms / 1000:.1f}s)")
    if summary.excluded:
        lines.append(f"Excluded as duplicates: {summary.excluded}")
    if summary.skipped:
        lines.append(f"Skipped existing notes: {summary.skipped}")
    for report in summary.sources:
        if report.valid:
            lines.append(f"- {report.name}: {report.message}")
        else:
            lines.append(f"- {report.name}: invalid ({report.message})")
    return "\n".join(lines) + "\n"


__all__ = [
    "ImportSummary",
    "RowResult",
    "SourceFile",
    "SourceReport",
    "determine_status",
    "import_row",
    "import_rows",
    "note_path_for",
    "poster_path_for",
    "render_summary",
    "run_import",
]
