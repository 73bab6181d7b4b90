"""Vault storage: notes and poster assets under one root directory.

Paths handed to :class:`VaultStorage` are vault-relative and use ``/``
separators, matching how notes link to each other and to attachments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


def normalize_path(path: str) -> str:
    """Collapse separators and drop ``.`` segments; ``a\\b//c/`` -> ``a/b/c``."""

    parts = [part for part in (path or "").replace("\\", "/").split("/") if part and part != "."]
    return "/".join(parts)


class VaultStorage:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).expanduser().resolve()

    def _resolve(self, path: str) -> Path:
        relative = normalize_path(path)
        target = (self.root / relative).resolve()
        if target != self.root and self.root not in target.parents:
            raise StorageError(f"Path {path} escapes the vault root {self.root}", path)
        return target

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_file(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read_text(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        """Create or overwrite a text document; its folder must already exist."""

        target = self._resolve(path)
        if target.is_dir():
            raise StorageError(f"Cannot write {path}: a folder with the same name exists.", path)
        target.write_text(content, encoding="utf-8")

    def create_binary(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        if target.is_dir():
            raise StorageError(f"Cannot write {path}: a folder with the same name exists.", path)
        target.write_bytes(data)
        logger.debug("Stored %d bytes at %s", len(data), target)

    def ensure_folder(self, path: str) -> None:
        """Create ``path`` and any missing parents.

        Raises StorageError naming the colliding segment when a file sits
        where a folder is needed.
        """

        current = ""
        for segment in normalize_path(path).split("/"):
            if not segment:
                continue
            current = f"{current}/{segment}" if current else segment
            target = self._resolve(current)
            if target.is_file():
                raise StorageError(f"Cannot create folder {current}: a file with the same name exists.", current)
            if not target.exists():
                target.mkdir()
                logger.debug("Created folder %s", target)


__all__ = [
    "StorageError",
    "VaultStorage",
    "normalize_path",
]
