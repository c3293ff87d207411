"""Validate command for configuration files."""

from pathlib import Path

import typer

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    handle_errors,
    display_success,
    display_error,
)
from herald.services.config_manager import ConfigManager


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(
        CONFIG_OPTION_DEFAULT, help="Config file to validate"
    ),
):
    """Validate configuration file syntax and semantics."""
    try:
        manager = ConfigManager(config_path=str(config_path))
        config = manager.load_config()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    display_success("Configuration is valid!")
    typer.echo(f"  Registry: {config.watcher.query_url}")
    typer.echo(f"  Lookback: {config.watcher.since}")
    typer.echo(f"  Interval: {config.watcher.interval}")
    typer.echo(f"  Feed: {config.feed.provider.value}")
