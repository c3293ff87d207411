"""Run command: the polling daemon.

Loads the blocklist, polls immediately, then polls on the configured
interval and announces every new matching package version.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from prometheus_client import start_http_server

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    load_config,
    display_info,
    display_warning,
)
from herald.observability.metrics import REGISTRY
from herald.orchestration import HeraldApp


def run_command(
    config_path: Path = typer.Option(
        CONFIG_OPTION_DEFAULT,
        "--config",
        "-c",
        help="Path to herald config YAML",
    ),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", "-p", help="Expose Prometheus metrics on this port"
    ),
):
    """Watch the registry and announce new packages.

    Press Ctrl+C to stop gracefully.
    """
    config = load_config(config_path)

    typer.secho("Starting herald", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  Config: {config_path}")
    typer.echo(f"  Registry: {config.watcher.query_url}")
    typer.echo(f"  Interval: {config.watcher.interval}")
    typer.echo(f"  Feed: {config.feed.provider.value}")

    if metrics_port is not None:
        start_http_server(metrics_port, registry=REGISTRY)
        display_info(f"  Metrics endpoint: http://localhost:{metrics_port}/metrics")

    typer.echo("\nPress Ctrl+C to stop.\n")

    app = HeraldApp(config)
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        display_warning("\nHerald stopped.")
    except Exception as e:
        typer.secho(f"Herald failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
