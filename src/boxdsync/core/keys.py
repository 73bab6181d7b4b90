"""Shared frontmatter and template keys to avoid magic strings across modules."""

from __future__ import annotations

# Row-derived keys
K_TITLE = "title"
K_YEAR = "year"
K_LETTERBOXD = "letterboxd"
K_STATUS = "status"
K_RATING = "rating"
K_REWATCH = "rewatch"
K_DATE = "date"
K_WATCHED = "watched"
K_TAGS = "tags"

# Poster keys
K_COVER = "cover"
K_POSTER_PATH = "posterPath"
K_POSTER_URL = "posterUrl"

# Metadata keys
K_DESCRIPTION = "description"
K_AVERAGE_RATING = "averageRating"
K_DIRECTORS = "directors"
K_GENRES = "genres"
K_CAST = "cast"
K_STUDIOS = "studios"
K_COUNTRIES = "countries"
