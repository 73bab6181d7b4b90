from pathlib import Path

import pytest

from boxdsync.workflows.doctor import build_doctor_report, format_doctor_report
from boxdsync.workflows.settings import FieldPolicy, ImportSettings, load_settings_from_env


def test_defaults(monkeypatch):
    for name in (
        "OUTPUT_FOLDER",
        "DOWNLOAD_POSTERS",
        "POSTER_FOLDER",
        "RATE_LIMIT_DELAY_MS",
        "SKIP_EXISTING",
        "MAX_REDIRECTS",
        "TIMEOUT",
        "TEMPLATE_PATH",
        "EXCLUDE_FIELDS",
    ):
        monkeypatch.delenv(f"BOXDSYNC_{name}", raising=False)

    settings = load_settings_from_env()

    assert settings == ImportSettings()
    assert settings.output_folder == "Letterboxd"
    assert settings.poster_folder == "Letterboxd/attachments"
    assert settings.rate_limit_delay_ms == 200
    assert settings.download_posters is False


def test_env_overrides_and_bad_values(monkeypatch, tmp_path: Path) -> None:
    template = tmp_path / "note.tpl"
    template.write_text("{{title}}", encoding="utf-8")
    monkeypatch.setenv("BOXDSYNC_OUTPUT_FOLDER", "Films")
    monkeypatch.setenv("BOXDSYNC_DOWNLOAD_POSTERS", "yes")
    monkeypatch.setenv("BOXDSYNC_RATE_LIMIT_DELAY_MS", "not-a-number")
    monkeypatch.setenv("BOXDSYNC_EXCLUDE_FIELDS", "cast, average-rating")
    monkeypatch.setenv("BOXDSYNC_TEMPLATE_PATH", str(template))

    settings = load_settings_from_env()

    assert settings.output_folder == "Films"
    assert settings.download_posters is True
    assert settings.rate_limit_delay_ms == 200
    assert settings.template == "{{title}}"
    assert settings.fields == FieldPolicy(include_cast=False, include_average_rating=False)


def test_missing_template_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BOXDSYNC_TEMPLATE_PATH", str(tmp_path / "missing.tpl"))

    with pytest.raises(FileNotFoundError):
        load_settings_from_env()


def test_field_policy_rejects_unknown_names():
    with pytest.raises(ValueError):
        FieldPolicy.excluding(["budget"])


def test_with_overrides_ignores_none():
    settings = ImportSettings().with_overrides(output_folder=None, skip_existing=True)

    assert settings.output_folder == "Letterboxd"
    assert settings.skip_existing is True


def test_doctor_flags_bad_exclusions(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("BOXDSYNC_TEMPLATE_PATH", raising=False)
    monkeypatch.setenv("BOXDSYNC_EXCLUDE_FIELDS", "budget")

    report = build_doctor_report(vault=tmp_path)

    assert report["ok"] is False
    names = {check["name"]: check["status"] for check in report["checks"]}
    assert names["BOXDSYNC_EXCLUDE_FIELDS"] == "missing"
    assert names["vault"] == "ok"
    assert "boxdsync doctor" in format_doctor_report(report)
