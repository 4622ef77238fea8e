from __future__ import annotations

import shutil
from importlib import metadata
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from unizip.archiver import ArchiveCreationError, ArchiveOptions, build_archive
from unizip.config import AppConfig, config_to_snapshot, load_config
from unizip.model import ArchiveResult
from unizip.reporters.console import render_console
from unizip.reporters.json_report import write_manifest

app = typer.Typer(add_completion=False)

TOOL_NAME = "unizip"


def _tool_version() -> str:
    try:
        return metadata.version(TOOL_NAME)
    except metadata.PackageNotFoundError:
        return "0.1.0-dev"


def version_callback(value: bool):
    if value:
        typer.echo(f"{TOOL_NAME} version: {_tool_version()}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
):
    """
    Build ZIP archives with UTF-8 entry names.
    """
    pass


def _options_from_cfg(cfg: AppConfig) -> ArchiveOptions:
    a = cfg.archive
    return ArchiveOptions(
        buffer_size=a.buffer_size,
        unicode_extra_field=a.unicode_extra_field,
        utf8_flag=a.utf8_flag,
        temp_prefix=a.temp_prefix,
        temp_suffix=a.temp_suffix,
        temp_dir=a.temp_dir,
    )


def _resolve_output(output: str, cfg: AppConfig) -> Path:
    dest = Path(output).expanduser()
    if not dest.is_absolute() and cfg.output_dir:
        dest = Path(cfg.output_dir).expanduser() / dest
    return dest.resolve()


def _move_archive(result: ArchiveResult, dest: Path) -> ArchiveResult:
    dest.parent.mkdir(parents=True, exist_ok=True)
    # shutil.move into an existing directory keeps the temp file name
    moved = shutil.move(result.archive_path, str(dest))
    return result.model_copy(update={"archive_path": str(Path(moved).resolve())})


@app.command()
def create(
    paths: List[str] = typer.Argument(..., help="Files to archive. Directories and missing paths are skipped."),
    config: str = typer.Option(None, "--config", help="Path to YAML config."),
    output: str = typer.Option(None, "--output", "-o", help="Move the finished archive here."),
    manifest: str = typer.Option(None, "--manifest", help="Write a JSON manifest of the archive."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Print a single summary line."),
):
    try:
        cfg = load_config(config)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise typer.BadParameter(f"Invalid config {config}: {e}")

    try:
        result = build_archive(paths, _options_from_cfg(cfg))
    except ArchiveCreationError as e:
        typer.secho(f"Error creating archive: {e}", fg=typer.colors.RED, err=True)
        if e.archive_path is not None:
            typer.secho(f"Partial archive left at {e.archive_path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    for s in result.skipped:
        typer.secho(f"Skipping {s.source_path}: {s.reason}.", fg=typer.colors.YELLOW, err=True)

    result = result.model_copy(update={"tool": {"name": TOOL_NAME, "version": _tool_version()}})

    if output:
        try:
            result = _move_archive(result, _resolve_output(output, cfg))
        except OSError as e:
            typer.secho(f"Error moving archive to {output}: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)

    if manifest:
        try:
            write_manifest(Path(manifest).expanduser(), result, config_to_snapshot(cfg))
        except OSError as e:
            typer.secho(f"Error writing manifest {manifest}: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)

    if quiet:
        typer.echo(f"Archived {len(result.entries)} file(s) -> {result.archive_path}")
    else:
        render_console(result)


if __name__ == "__main__":
    app()
