"""Poll command: run a single registry tick.

Nothing is announced and the checkpoint is left untouched unless asked.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    load_config,
    handle_errors,
    display_success,
    display_warning,
)
from herald.models.config import HeraldConfig
from herald.models.package import NormalizedPackage
from herald.orchestration import HeraldApp


@handle_errors
def poll_command(
    config_path: Path = typer.Option(
        CONFIG_OPTION_DEFAULT,
        "--config",
        "-c",
        help="Path to herald config YAML",
    ),
    publish: bool = typer.Option(
        False, "--publish/--no-publish", help="Announce matched packages"
    ),
    commit: bool = typer.Option(
        False, "--commit/--no-commit", help="Advance and persist the checkpoint"
    ),
):
    """Poll the registry once and list matching packages."""
    config = load_config(config_path)

    packages = asyncio.run(_poll(config, publish=publish, commit=commit))

    if packages is None:
        display_warning("Poll skipped: registry unreachable or response unusable.")
        raise typer.Exit(code=1)

    display_success(f"Found {len(packages)} matching packages:")
    for pkg in packages:
        typer.echo(f" - {pkg.key}: {pkg.url}")

    if not commit:
        typer.echo("Checkpoint not advanced (use --commit).")


async def _poll(
    config: HeraldConfig, publish: bool, commit: bool
) -> Optional[List[NormalizedPackage]]:
    app = HeraldApp(config)
    try:
        await app.setup(publish=publish)
        return await app.poll_once(commit=commit)
    finally:
        await app.close()
