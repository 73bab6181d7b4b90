from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv

from .importer import SourceFile, render_summary, run_import
from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.page_data import fetch_movie_page_data
from .workflows.request import AiohttpTransport
from .workflows.rows import validate_csv
from .workflows.settings import FieldPolicy, ImportSettings, load_settings_from_env
from .workflows.storage import VaultStorage
from .workflows.template import TemplateSyntaxError, compile_template

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """boxdsync (tracking-service export to Markdown notes)

Usage:
  boxdsync import <FILES...> --vault <DIR> [options]
  boxdsync validate <FILES...>
  boxdsync fetch <url> [--json]
  boxdsync doctor

Import options:
  --vault <DIR>            Vault root; notes are written below it.
  --output-folder <PATH>   Note folder inside the vault (default: Letterboxd).
  --posters/--no-posters   Download poster images into the vault.
  --poster-folder <PATH>   Poster folder inside the vault.
  --delay-ms <N>           Pause between films in milliseconds (default: 200).
  --template <FILE>        Render notes with a custom template.
  --skip-existing          Leave films that already have a note untouched.
  --exclude-field <NAME>   Drop a metadata category (repeatable).
  --summary <FILE>         Write the run summary as JSON.
  --verbose                Debug logging.

Environment:
  BOXDSYNC_* variables (and a .env file) provide defaults; flags win.
"""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
) -> None:
    load_dotenv()
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


def _build_settings(
    *,
    output_folder: Optional[str],
    posters: Optional[bool],
    poster_folder: Optional[str],
    delay_ms: Optional[int],
    template_path: Optional[Path],
    skip_existing: Optional[bool],
    exclude_fields: Optional[List[str]],
) -> ImportSettings:
    try:
        settings = load_settings_from_env()
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc))
    template: Optional[str] = None
    if template_path is not None:
        if not template_path.is_file():
            raise typer.BadParameter(f"Template not found: {template_path}", param_hint="--template")
        template = template_path.read_text(encoding="utf-8")
    fields: Optional[FieldPolicy] = None
    if exclude_fields:
        try:
            fields = FieldPolicy.excluding(exclude_fields)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--exclude-field")
    if delay_ms is not None and delay_ms < 0:
        raise typer.BadParameter("must be >= 0", param_hint="--delay-ms")
    return settings.with_overrides(
        output_folder=output_folder,
        download_posters=posters,
        poster_folder=poster_folder,
        rate_limit_delay_ms=delay_ms,
        template=template,
        skip_existing=skip_existing,
        fields=fields,
    )


def _read_sources(files: List[Path]) -> List[SourceFile]:
    sources: List[SourceFile] = []
    for path in files:
        if not path.is_file():
            raise typer.BadParameter(f"File not found: {path}")
        sources.append(SourceFile.from_path(path))
    return sources


def _print_progress(index: int, total: int, title: str, poster_url: Optional[str], success: bool) -> None:
    mark = "ok" if success else "failed"
    typer.echo(f"[{index}/{total}] {title}: {mark}")


def _print_file_start(name: str, position: int, count: int) -> None:
    typer.echo(f"Importing {name} ({position}/{count})")


async def _import_async(sources: List[SourceFile], settings: ImportSettings, storage: VaultStorage, cancel_flag: dict):
    async with AiohttpTransport(timeout=settings.timeout) as transport:
        return await run_import(
            sources,
            settings,
            transport=transport,
            storage=storage,
            on_progress=_print_progress,
            on_file_start=_print_file_start,
            is_cancelled=lambda: cancel_flag["cancelled"],
        )


@app.command("import", add_help_option=True)
def import_cmd(
    files: List[Path] = typer.Argument(..., help="Export CSV files (watched.csv, diary.csv, watchlist.csv...)."),
    vault: Path = typer.Option(..., "--vault", help="Vault root directory."),
    output_folder: Optional[str] = typer.Option(None, "--output-folder", help="Note folder inside the vault."),
    posters: Optional[bool] = typer.Option(None, "--posters/--no-posters", help="Download poster images."),
    poster_folder: Optional[str] = typer.Option(None, "--poster-folder", help="Poster folder inside the vault."),
    delay_ms: Optional[int] = typer.Option(None, "--delay-ms", help="Pause between films in milliseconds."),
    template: Optional[Path] = typer.Option(None, "--template", help="Custom note template file."),
    skip_existing: bool = typer.Option(False, "--skip-existing", help="Skip films that already have a note."),
    exclude_field: Optional[List[str]] = typer.Option(None, "--exclude-field", help="Metadata category to leave out."),
    summary_path: Optional[Path] = typer.Option(None, "--summary", help="Write the run summary as JSON."),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging."),
) -> None:
    """Import export files into Markdown notes."""
    _configure_logging(verbose)
    settings = _build_settings(
        output_folder=output_folder,
        posters=posters,
        poster_folder=poster_folder,
        delay_ms=delay_ms,
        template_path=template,
        skip_existing=skip_existing or None,
        exclude_fields=exclude_field,
    )
    if settings.template:
        try:
            compile_template(settings.template)
        except TemplateSyntaxError as exc:
            typer.echo(f"error: invalid template: {exc}", err=True)
            raise typer.Exit(code=2)

    sources = _read_sources(files)
    vault.mkdir(parents=True, exist_ok=True)
    storage = VaultStorage(vault)

    cancel_flag = {"cancelled": False}

    def _request_cancel(signum, frame) -> None:
        cancel_flag["cancelled"] = True
        typer.echo("Cancelling after the current film...", err=True)

    previous = signal.signal(signal.SIGINT, _request_cancel)
    try:
        summary = asyncio.run(_import_async(sources, settings, storage, cancel_flag))
    finally:
        signal.signal(signal.SIGINT, previous)

    typer.echo(render_summary(summary), nl=False)
    if summary_path is not None:
        summary_path.write_text(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2) + "\n", encoding="utf-8")

    if summary.status == "cancelled":
        raise typer.Exit(code=130)
    if summary.failed or summary.invalid_sources:
        raise typer.Exit(code=3)
    raise typer.Exit(code=0)


@app.command("validate", add_help_option=True)
def validate_cmd(
    files: List[Path] = typer.Argument(..., help="Export CSV files to check."),
) -> None:
    """Check export headers and count recognized movies."""
    all_valid = True
    for path in files:
        if not path.is_file():
            typer.echo(f"{path}: invalid (file not found)")
            all_valid = False
            continue
        source = SourceFile.from_path(path)
        if source.error:
            typer.echo(f"{path.name}: invalid ({source.error})")
            all_valid = False
            continue
        result = validate_csv(source.content)
        state = "ok" if result.valid else "invalid"
        typer.echo(f"{path.name}: {state} ({result.message})")
        all_valid = all_valid and result.valid
    raise typer.Exit(code=0 if all_valid else 2)


async def _fetch_async(url: str, settings: ImportSettings):
    async with AiohttpTransport(timeout=settings.timeout) as transport:
        return await fetch_movie_page_data(url, transport, max_redirects=settings.max_redirects)


@app.command("fetch", add_help_option=True)
def fetch_cmd(
    url: str = typer.Argument(..., help="Film link (short, member or canonical)."),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging."),
) -> None:
    """Resolve one film link and print its metadata."""
    _configure_logging(verbose)
    try:
        settings = load_settings_from_env()
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc))
    page = asyncio.run(_fetch_async(url, settings))
    if json_out:
        sys.stdout.write(json.dumps(asdict(page), ensure_ascii=False) + "\n")
    else:
        metadata = page.metadata
        typer.echo(f"url: {page.movie_url or '-'}")
        typer.echo(f"poster: {page.poster_url or '-'}")
        typer.echo(f"description: {metadata.description or '-'}")
        typer.echo(f"directors: {', '.join(metadata.directors) or '-'}")
        typer.echo(f"genres: {', '.join(metadata.genres) or '-'}")
        typer.echo(f"cast: {', '.join(metadata.cast) or '-'}")
        typer.echo(f"average rating: {metadata.average_rating or '-'}")
        typer.echo(f"studios: {', '.join(metadata.studios) or '-'}")
        typer.echo(f"countries: {', '.join(metadata.countries) or '-'}")
    raise typer.Exit(code=1 if page.is_empty else 0)


@app.command("doctor", add_help_option=True)
def doctor_cmd(
    vault: Optional[Path] = typer.Option(None, "--vault", help="Also check that this vault is writable."),
) -> None:
    """Print environment and dependency diagnostics."""
    report = build_doctor_report(vault=vault)
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)
