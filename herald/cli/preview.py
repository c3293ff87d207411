"""Preview command: render an outbound message without posting it."""

from pathlib import Path
from typing import List, Optional

import typer

from herald.cli.utils import (
    CONFIG_OPTION_DEFAULT,
    load_config,
    handle_errors,
    display_info,
)
from herald.services.publisher_service import render_message
from herald.utils.package_utils import nice_package


@handle_errors
def preview_command(
    name: str = typer.Argument(..., help="Package name"),
    version: str = typer.Argument(..., help="Package version"),
    url: Optional[str] = typer.Option(None, "--url", help="Homepage URL"),
    description: str = typer.Option("", "--description", "-d"),
    keywords: Optional[List[str]] = typer.Option(
        None, "--keyword", "-k", help="Package keyword (repeatable)"
    ),
    config_path: Path = typer.Option(
        CONFIG_OPTION_DEFAULT,
        "--config",
        "-c",
        help="Path to herald config YAML",
    ),
):
    """Render the message that would be posted for NAME@VERSION."""
    config = load_config(config_path)

    raw = {
        "name": name,
        "dist-tags": {"latest": version},
        "description": description,
        "keywords": keywords or [],
    }
    if url:
        raw["homepage"] = url

    message = render_message(config.publisher, nice_package(name, raw))

    typer.echo(message)
    display_info(f"({len(message)}/{config.publisher.max_length} characters)")
