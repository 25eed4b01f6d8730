"""Basic commands: init, ls, cat."""

from __future__ import annotations

import json
import os
import sys

import click

from ..vault import Vault
from ._helpers import (
    main,
    _format_size,
    _open_vault,
    _require_vault,
    _status,
    _vault_option,
)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@_vault_option
@click.pass_context
def init(ctx):
    """Create a new, empty vault."""
    vault_path = _require_vault(ctx)
    if os.path.exists(vault_path):
        raise click.ClickException(f"Vault already exists: {vault_path}")
    Vault.open(vault_path)
    _status(ctx, f"Initialized {vault_path}")


# ---------------------------------------------------------------------------
# ls
# ---------------------------------------------------------------------------

@main.command()
@_vault_option
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text",
              help="Output format.")
@click.pass_context
def ls(ctx, fmt):
    """List the current entries in the vault."""
    vault = _open_vault(_require_vault(ctx))
    entries = list(vault.list_entries())
    if fmt == "json":
        click.echo(json.dumps([
            {"name": e.name, "type": e.type, "mtime": e.mtime, "length": e.length}
            for e in entries
        ], indent=2))
        return
    for e in entries:
        kind = "d" if e.is_directory else "f"
        size = "-" if e.is_directory else _format_size(e.length)
        click.echo(f"{kind} {size:>10}  {e.name or '/'}")


# ---------------------------------------------------------------------------
# cat
# ---------------------------------------------------------------------------

@main.command()
@_vault_option
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def cat(ctx, paths):
    """Concatenate file contents to stdout."""
    vault = _open_vault(_require_vault(ctx))
    for path in paths:
        name = path.strip("/")
        try:
            data = vault.read(name)
        except FileNotFoundError:
            raise click.ClickException(f"File not found: {name}")
        except (IsADirectoryError, NotADirectoryError):
            raise click.ClickException(f"{name or '/'} is a directory, not a file")
        sys.stdout.buffer.write(data)
