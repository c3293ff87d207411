"""Checkpoint commands.

Inspect or edit the persisted watcher cursor.
"""

from datetime import datetime, timezone
from pathlib import Path

import typer

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    load_config,
    handle_errors,
    display_success,
    display_warning,
    display_error,
)
from herald.services.checkpoint_service import CheckpointService
from herald.utils.duration import since

checkpoint_app = typer.Typer(help="Inspect or edit the watcher checkpoint")

CONFIG_OPTION = typer.Option(
    CONFIG_OPTION_DEFAULT, "--config", "-c", help="Path to herald config YAML"
)


def _service(config_path: Path) -> CheckpointService:
    config = load_config(config_path)
    return CheckpointService(config.watcher.checkpoint_file)


def _describe(cursor: int) -> str:
    when = datetime.fromtimestamp(cursor / 1000, tz=timezone.utc)
    return f"{cursor} ({when.isoformat()})"


@checkpoint_app.command(name="show")
@handle_errors
def checkpoint_show(config_path: Path = CONFIG_OPTION):
    """Display the persisted checkpoint."""
    service = _service(config_path)
    checkpoint = service.load()

    if checkpoint is None:
        display_warning(f"No checkpoint at {service.path}")
        return

    typer.echo(f"Checkpoint: {_describe(checkpoint.cursor)}")
    typer.echo(f"  File: {service.path}")
    typer.echo(f"  Updated: {checkpoint.updated_at.isoformat()}")


@checkpoint_app.command(name="reset")
@handle_errors
def checkpoint_reset(config_path: Path = CONFIG_OPTION):
    """Delete the checkpoint; the next start uses the lookback window."""
    service = _service(config_path)
    if not service.clear():
        display_error(f"Could not remove {service.path}")
        raise typer.Exit(code=1)
    display_success("Checkpoint cleared.")


@checkpoint_app.command(name="set")
@handle_errors
def checkpoint_set(
    value: str = typer.Argument(
        ..., help="Epoch milliseconds, or a duration ago such as 2h"
    ),
    config_path: Path = CONFIG_OPTION,
):
    """Overwrite the checkpoint."""
    if value.isdigit():
        cursor = int(value)
    else:
        try:
            cursor = since(value)
        except ValueError as e:
            display_error(f"Invalid checkpoint value: {e}")
            raise typer.Exit(code=1)

    service = _service(config_path)
    if not service.write(cursor):
        display_error(f"Could not write {service.path}")
        raise typer.Exit(code=1)
    display_success(f"Checkpoint set to {_describe(cursor)}")
