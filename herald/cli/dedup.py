"""Dedup store commands.

Inspect which package versions have been announced, or forget one so it
can be announced again.
"""

import asyncio
from pathlib import Path

import typer

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    load_config,
    handle_errors,
    display_success,
    display_warning,
)
from herald.services.dedup_service import DiskCacheDedupStore

dedup_app = typer.Typer(help="Inspect or edit the announcement dedup store")

CONFIG_OPTION = typer.Option(
    CONFIG_OPTION_DEFAULT, "--config", "-c", help="Path to herald config YAML"
)


def _store(config_path: Path) -> DiskCacheDedupStore:
    config = load_config(config_path)
    return DiskCacheDedupStore(config.store.path)


@dedup_app.command(name="count")
@handle_errors
def dedup_count(config_path: Path = CONFIG_OPTION):
    """Number of announced package versions."""
    store = _store(config_path)
    try:
        typer.echo(f"{len(store)} announced versions in {store.path}")
    finally:
        store.close()


@dedup_app.command(name="show")
@handle_errors
def dedup_show(
    key: str = typer.Argument(..., help="Identity key, e.g. gulp-foo@1.0.0"),
    config_path: Path = CONFIG_OPTION,
):
    """Show the record for an announced version."""
    store = _store(config_path)
    try:
        record = asyncio.run(store.find_by_key(key))
    finally:
        store.close()

    if record is None:
        display_warning(f"{key} has not been announced")
        raise typer.Exit(code=1)

    typer.echo(f"{record.key} announced at {record.created_at.isoformat()}")
    typer.echo(f"  Message: {record.message}")


@dedup_app.command(name="forget")
@handle_errors
def dedup_forget(
    key: str = typer.Argument(..., help="Identity key, e.g. gulp-foo@1.0.0"),
    config_path: Path = CONFIG_OPTION,
):
    """Remove a record so the version is announced again."""
    store = _store(config_path)
    try:
        removed = asyncio.run(store.remove(key))
    finally:
        store.close()

    if not removed:
        display_warning(f"{key} was not recorded")
        return
    display_success(f"Forgot {key}")
