"""Import settings and their environment-variable loader."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional

from .sync_config import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_OUTPUT_FOLDER,
    DEFAULT_POSTER_FOLDER,
    DEFAULT_RATE_LIMIT_DELAY_MS,
    DEFAULT_TIMEOUT_SECONDS,
)

ENV_PREFIX = "BOXDSYNC_"


@dataclass(frozen=True)
class FieldPolicy:
    """Which metadata categories end up in generated notes."""

    include_description: bool = True
    include_directors: bool = True
    include_genres: bool = True
    include_cast: bool = True
    include_average_rating: bool = True
    include_studios: bool = True
    include_countries: bool = True

    @classmethod
    def excluding(cls, names: Iterable[str]) -> "FieldPolicy":
        """Return a policy with the named categories switched off.

        Names match the attribute suffix, e.g. ``cast`` or ``average_rating``.
        """

        toggles = {}
        for raw in names:
            name = (raw or "").strip().lower().replace("-", "_")
            if not name:
                continue
            attr = f"include_{name}"
            if attr not in cls.__dataclass_fields__:
                raise ValueError(f"Unknown metadata field: {raw}")
            toggles[attr] = False
        return cls(**toggles)


@dataclass(frozen=True)
class ImportSettings:
    output_folder: str = DEFAULT_OUTPUT_FOLDER
    download_posters: bool = False
    poster_folder: str = DEFAULT_POSTER_FOLDER
    template: Optional[str] = None
    rate_limit_delay_ms: int = DEFAULT_RATE_LIMIT_DELAY_MS
    skip_existing: bool = False
    fields: FieldPolicy = field(default_factory=FieldPolicy)
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def with_overrides(self, **changes) -> "ImportSettings":
        cleaned = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **cleaned)


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: str = "0") -> bool:
    raw = os.getenv(name, default)
    return str(raw).strip().lower() not in {"0", "false", "no", "off", ""}


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "")
    return raw.strip() or default


def load_settings_from_env() -> ImportSettings:
    """Build ImportSettings from ``BOXDSYNC_*`` variables.

    Unparseable values fall back to defaults. ``BOXDSYNC_EXCLUDE_FIELDS`` is a
    comma-separated list of metadata categories to leave out of notes and
    ``BOXDSYNC_TEMPLATE_PATH`` points at a note template file.
    """

    template: Optional[str] = None
    template_path = os.getenv(f"{ENV_PREFIX}TEMPLATE_PATH", "").strip()
    if template_path:
        path = Path(template_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Template not found: {path}")
        template = path.read_text(encoding="utf-8")

    excluded = [token for token in os.getenv(f"{ENV_PREFIX}EXCLUDE_FIELDS", "").split(",") if token.strip()]

    return ImportSettings(
        output_folder=_env_str(f"{ENV_PREFIX}OUTPUT_FOLDER", DEFAULT_OUTPUT_FOLDER),
        download_posters=_env_bool(f"{ENV_PREFIX}DOWNLOAD_POSTERS", "0"),
        poster_folder=_env_str(f"{ENV_PREFIX}POSTER_FOLDER", DEFAULT_POSTER_FOLDER),
        template=template,
        rate_limit_delay_ms=max(0, _env_int(f"{ENV_PREFIX}RATE_LIMIT_DELAY_MS", DEFAULT_RATE_LIMIT_DELAY_MS)),
        skip_existing=_env_bool(f"{ENV_PREFIX}SKIP_EXISTING", "0"),
        fields=FieldPolicy.excluding(excluded),
        max_redirects=max(0, _env_int(f"{ENV_PREFIX}MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS)),
        timeout=max(1.0, _env_float(f"{ENV_PREFIX}TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
    )


__all__ = [
    "FieldPolicy",
    "ImportSettings",
    "load_settings_from_env",
]
