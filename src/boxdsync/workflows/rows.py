"""Row model and header validation for tracking-service CSV exports."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set, Tuple

from .sync_config import (
    COL_DATE,
    COL_NAME,
    COL_RATING,
    COL_REWATCH,
    COL_TAGS,
    COL_URI,
    COL_WATCHED_DATE,
    COL_YEAR,
    DATE_COLUMNS,
    REQUIRED_COLUMNS,
)


class CsvFormatError(ValueError):
    """Raised when an export lacks the columns the importer relies on."""

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


@dataclass(frozen=True)
class SourceRow:
    """One parsed export line. Never mutated after parsing."""

    date: str
    title: str
    year: str
    uri: str
    rating: str = ""
    rewatch: str = ""
    tags: str = ""
    watched_date: str = ""

    @property
    def identity_key(self) -> Tuple[str, str]:
        return (self.title, self.year)

    @property
    def is_rewatch(self) -> bool:
        return self.rewatch.strip().lower() in {"yes", "true", "1"}

    @property
    def tag_list(self) -> List[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str
    movie_count: int = 0
    missing_columns: Tuple[str, ...] = ()


def _read_table(content: str) -> List[List[str]]:
    text = (content or "").lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text))
    return [row for row in reader if any(cell.strip() for cell in row)]


def missing_columns(header: Sequence[str]) -> List[str]:
    """Return the structurally required columns absent from a header row."""

    present = {name.strip() for name in header}
    missing = [name for name in REQUIRED_COLUMNS if name not in present]
    if not any(name in present for name in DATE_COLUMNS):
        missing.append(" or ".join(DATE_COLUMNS))
    return missing


def _row_from_cells(index: Dict[str, int], cells: Sequence[str]) -> SourceRow:
    def cell(column: str) -> str:
        pos = index.get(column)
        if pos is None or pos >= len(cells):
            return ""
        return cells[pos].strip()

    return SourceRow(
        date=cell(COL_DATE),
        title=cell(COL_NAME),
        year=cell(COL_YEAR),
        uri=cell(COL_URI),
        rating=cell(COL_RATING),
        rewatch=cell(COL_REWATCH),
        tags=cell(COL_TAGS),
        watched_date=cell(COL_WATCHED_DATE),
    )


def _parse_table(table: List[List[str]]) -> List[SourceRow]:
    header = [name.strip() for name in table[0]]
    missing = missing_columns(header)
    if missing:
        raise CsvFormatError(
            f"Unsupported CSV format: missing column(s) {', '.join(missing)}",
            missing,
        )
    index: Dict[str, int] = {}
    for pos, name in enumerate(header):
        index.setdefault(name, pos)
    rows: List[SourceRow] = []
    for cells in table[1:]:
        row = _row_from_cells(index, cells)
        # Rows without a title cannot be named or deduplicated
        if not row.title:
            continue
        rows.append(row)
    return rows


def parse_rows(content: str) -> List[SourceRow]:
    """Parse an export into SourceRows, raising CsvFormatError on bad headers or broken quoting."""

    try:
        table = _read_table(content)
    except csv.Error as exc:
        raise CsvFormatError(f"Unreadable CSV: {exc}") from exc
    if not table:
        raise CsvFormatError("CSV file is empty or invalid")
    return _parse_table(table)


def validate_csv(content: str) -> ValidationResult:
    """Check an export up front, reporting the recognized movie count."""

    try:
        table = _read_table(content)
    except csv.Error as exc:
        return ValidationResult(False, f"Unreadable CSV: {exc}")
    if not table:
        return ValidationResult(False, "CSV file is empty")
    header = [name.strip() for name in table[0]]
    missing = missing_columns(header)
    if missing:
        return ValidationResult(
            False,
            f"Missing required column(s): {', '.join(missing)}",
            0,
            tuple(missing),
        )
    count = len(_parse_table(table))
    return ValidationResult(True, f"Found {count} movies", count)


def identity_keys(rows: Sequence[SourceRow]) -> Set[Tuple[str, str]]:
    return {row.identity_key for row in rows}


def describe_row(row: SourceRow) -> str:
    return f"{row.title} ({row.year})" if row.year else row.title


__all__ = [
    "CsvFormatError",
    "SourceRow",
    "ValidationResult",
    "describe_row",
    "identity_keys",
    "missing_columns",
    "parse_rows",
    "validate_csv",
]
