"""The import command, including live mode."""

from __future__ import annotations

import datetime

import click

from .. import watch
from .._exclude import IgnoreFilter
from ..importer import Importer, ImportOptions
from ..status import ERROR, FILE_IMPORTED, FILE_SKIPPED
from ._helpers import (
    main,
    _format_size,
    _no_create_option,
    _open_or_create_vault,
    _open_vault,
    _require_vault,
    _status,
    _vault_option,
)


def _summary(status) -> str:
    files = "file" if status.file_count == 1 else "files"
    return f"{status.file_count} {files}, {_format_size(status.total_size)}"


def _now() -> str:
    return datetime.datetime.now().strftime("%H:%M:%S")


@main.command(name="import")
@_vault_option
@click.argument("source", type=click.Path(exists=True))
@click.option("--base-path", "base_path", default="",
              help="Vault path prefix for imported entries.")
@click.option("--resume", is_flag=True, default=False,
              help="Only transfer entries that are new or changed since the last import.")
@click.option("--live", is_flag=True, default=False,
              help="Keep running and mirror later changes (Ctrl-C to stop).")
@click.option("--exclude", multiple=True,
              help="Exclude paths matching pattern (gitignore syntax, repeatable).")
@click.option("--exclude-from", "exclude_from", type=click.Path(exists=True),
              help="Read exclude patterns from file.")
@click.option("--debounce", type=int, default=50,
              help="Debounce delay in ms for --live (default: 50).")
@_no_create_option
@click.pass_context
def import_(ctx, source, base_path, resume, live, exclude, exclude_from, debounce, no_create):
    """Import a file or directory into the vault.

    Requires --vault or TREEVAULT_VAULT environment variable.

    \b
    Examples:
        treevault import ./photos
        treevault import --resume --base-path 2024 ./photos
        treevault import --live --exclude '*.tmp' ./photos
    """
    vault_path = _require_vault(ctx)
    vault = _open_vault(vault_path) if no_create else _open_or_create_vault(vault_path)

    try:
        options = ImportOptions(
            live=live,
            resume=resume,
            base_path=base_path,
            ignore=IgnoreFilter(exclude, exclude_from=exclude_from),
            debounce=debounce,
        )
        importer = Importer(vault, source, options)
    except ValueError as exc:
        raise click.ClickException(str(exc))

    status = importer.status
    prefix = (lambda: f"[{_now()}] ") if live else (lambda: "")

    def on_imported(file):
        if live and status.done:
            click.echo(f"{prefix()}{file.mode}: {file.path} ({_summary(status)})")
        else:
            _status(ctx, f"{file.mode}: {file.path}")

    def on_skipped(file):
        _status(ctx, f"skipped: {file.path}")

    def on_error(exc):
        click.echo(f"{prefix()}ERROR: {exc}", err=True)

    status.on(FILE_IMPORTED, on_imported)
    status.on(FILE_SKIPPED, on_skipped)
    status.on(ERROR, on_error)

    if not live:
        try:
            importer.scan()
        except OSError as exc:
            raise click.ClickException(str(exc))
        click.echo(f"Imported {_summary(status)}")
        return

    try:
        watch._import_watchfiles()
    except ImportError as exc:
        raise click.ClickException(str(exc))

    def on_complete(err):
        if err is not None:
            click.echo(f"ERROR: Initial import failed: {err}", err=True)
        else:
            click.echo(f"Imported {_summary(status)}")
        if importer.watcher is not None:
            click.echo(f"Watching {source} -> :{importer.base_path or '/'} (debounce {debounce}ms)")

    try:
        importer.run(on_complete)
    except KeyboardInterrupt:
        status.close()
        click.echo("\nStopped watching.")
