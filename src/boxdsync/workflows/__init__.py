"""High-level exports for the boxdsync workflows."""

from .canonical import CanonicalResolutionError, ResolvedPage, resolve_canonical_page
from .json_ld import JsonLdMetadata, JsonLdParseError, parse_json_ld
from .note_builder import generate_movie_note, merge_with_existing_notes
from .page_data import MovieMetadata, MoviePageData, fetch_movie_page_data
from .request import AiohttpTransport, FetchError, HttpResponse, TooManyRedirectsError, fetch_bytes, fetch_text
from .rows import CsvFormatError, SourceRow, parse_rows, validate_csv
from .settings import FieldPolicy, ImportSettings, load_settings_from_env
from .storage import StorageError, VaultStorage
from .template import TemplateSyntaxError

__all__ = [
    "AiohttpTransport",
    "CanonicalResolutionError",
    "CsvFormatError",
    "FetchError",
    "FieldPolicy",
    "HttpResponse",
    "ImportSettings",
    "JsonLdMetadata",
    "JsonLdParseError",
    "MovieMetadata",
    "MoviePageData",
    "ResolvedPage",
    "SourceRow",
    "StorageError",
    "TemplateSyntaxError",
    "TooManyRedirectsError",
    "VaultStorage",
    "fetch_bytes",
    "fetch_movie_page_data",
    "fetch_text",
    "generate_movie_note",
    "load_settings_from_env",
    "merge_with_existing_notes",
    "parse_json_ld",
    "parse_rows",
    "resolve_canonical_page",
    "validate_csv",
]
