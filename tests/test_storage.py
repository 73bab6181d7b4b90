from pathlib import Path

import pytest

from boxdsync.workflows.storage import StorageError, VaultStorage, normalize_path


def test_normalize_path():
    assert normalize_path("Letterboxd//attachments/") == "Letterboxd/attachments"
    assert normalize_path("./a\\b/./c") == "a/b/c"
    assert normalize_path("") == ""


def test_ensure_folder_creates_intermediate_segments(tmp_path: Path) -> None:
    storage = VaultStorage(tmp_path)

    storage.ensure_folder("Letterboxd/attachments")
    storage.ensure_folder("Letterboxd/attachments")

    assert (tmp_path / "Letterboxd" / "attachments").is_dir()


def test_ensure_folder_rejects_file_collision(tmp_path: Path) -> None:
    (tmp_path / "Letterboxd").write_text("not a folder", encoding="utf-8")
    storage = VaultStorage(tmp_path)

    with pytest.raises(StorageError) as excinfo:
        storage.ensure_folder("Letterboxd/attachments")

    assert excinfo.value.path == "Letterboxd"
    assert "a file with the same name exists" in str(excinfo.value)


def test_text_and_binary_round_trip(tmp_path: Path) -> None:
    storage = VaultStorage(tmp_path)
    storage.ensure_folder("notes")

    storage.write_text("notes/Heat (1995).md", "first")
    storage.write_text("notes/Heat (1995).md", "second")
    storage.create_binary("notes/poster.jpg", b"\xff\xd8")

    assert storage.read_text("notes/Heat (1995).md") == "second"
    assert storage.is_file("notes/poster.jpg")
    assert storage.exists("notes")
    assert not storage.is_file("notes")
    assert (tmp_path / "notes" / "poster.jpg").read_bytes() == b"\xff\xd8"


def test_paths_cannot_escape_root(tmp_path: Path) -> None:
    storage = VaultStorage(tmp_path / "vault")

    with pytest.raises(StorageError):
        storage.write_text("../outside.md", "x")
