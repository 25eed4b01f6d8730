"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging

import click

from ..vault import Vault


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_vault(ctx, param, value):
    """Click callback: store --vault value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["vault_path"] = value
    return value


def _vault_option(f):
    """Shared --vault/-V option decorator for all commands."""
    return click.option(
        "--vault", "-V", type=click.Path(), envvar="TREEVAULT_VAULT",
        help="Path to the vault repository (or set TREEVAULT_VAULT).",
        expose_value=False, callback=_store_vault, is_eager=True,
    )(f)


def _require_vault(ctx) -> str:
    """Get the vault path from context, raising a clear error if missing."""
    path = ctx.obj.get("vault_path")
    if not path:
        raise click.ClickException(
            "No vault specified. Use --vault or set TREEVAULT_VAULT."
        )
    return path


def _open_vault(vault_path: str) -> Vault:
    try:
        return Vault.open(vault_path, create=False)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc))


def _open_or_create_vault(vault_path: str) -> Vault:
    return Vault.open(vault_path)


def _no_create_option(f):
    """Shared --no-create flag for write commands."""
    return click.option(
        "--no-create", "no_create", is_flag=True, default=False,
        help="Do not auto-create the vault if it doesn't exist.",
    )(f)


def _format_size(size: int) -> str:
    """Human-readable byte count (1023 B, 1.5 KiB, ...)."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KiB", "MiB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--vault", "-V", type=click.Path(), envvar="TREEVAULT_VAULT",
              help="Path to the vault repository (or set TREEVAULT_VAULT).",
              expose_value=False, callback=_store_vault, is_eager=True)
@click.option("-v", "--verbose", count=True,
              help="Verbose output on stderr (-vv adds debug logging).")
@click.pass_context
def main(ctx, verbose):
    """treevault: mirror file trees into an append-only vault.

    \b
    Quick start:
      treevault init -V photos.vault
      treevault import ~/Pictures
      treevault import --resume ~/Pictures
      treevault import --live ~/Pictures
      treevault ls
      treevault cat 2024/beach.jpg > beach.jpg

    Set TREEVAULT_VAULT to avoid passing --vault on every call.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose > 0
    if verbose > 1:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")
