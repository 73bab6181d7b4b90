"""Import defaults (hosts, columns, headers, status codes, labels).

Centralizes static defaults so the pipeline modules have no embedded magic
strings. Callers override the tunable ones through ImportSettings.
"""

from __future__ import annotations

# Tracked site
SITE_HOSTS = frozenset({"letterboxd.com", "www.letterboxd.com"})
FILM_PATH_MARKER = "film"

# CSV columns (header matching is case-sensitive)
COL_DATE = "Date"
COL_NAME = "Name"
COL_YEAR = "Year"
COL_URI = "Letterboxd URI"
COL_RATING = "Rating"
COL_REWATCH = "Rewatch"
COL_TAGS = "Tags"
COL_WATCHED_DATE = "Watched Date"

REQUIRED_COLUMNS = (COL_NAME, COL_YEAR, COL_URI)
DATE_COLUMNS = (COL_DATE, COL_WATCHED_DATE)

# HTTP
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})
DEFAULT_MAX_REDIRECTS = 5
MAX_CANONICAL_ATTEMPTS = 4

HDR_LOCATION = "Location"

HTML_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) boxdsync/0.1"
    ),
}
IMAGE_HEADERS = {
    **HTML_HEADERS,
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
}

# Structured data
JSON_LD_SCRIPT_TYPE = "application/ld+json"
MOVIE_TYPE = "Movie"
CAST_LIMIT = 10

# Notes
NOTES_MARKER = "## Notes"
STATUS_WATCHED = "Watched"
STATUS_WANT_TO_WATCH = "Want to Watch"

WATCHLIST_SOURCE = "watchlist.csv"
WATCHED_SOURCES = ("watched.csv", "diary.csv")

# Settings defaults
DEFAULT_OUTPUT_FOLDER = "Letterboxd"
DEFAULT_POSTER_FOLDER = "Letterboxd/attachments"
DEFAULT_RATE_LIMIT_DELAY_MS = 200
DEFAULT_TIMEOUT_SECONDS = 30.0
