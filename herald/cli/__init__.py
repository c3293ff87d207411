"""Herald CLI Package.

Provides the command-line interface for the npm registry herald.

Usage:
    python -m herald.cli run --config config/herald.yaml
    python -m herald.cli poll --no-commit
    python -m herald.cli checkpoint show
    python -m herald.cli dedup forget gulp-foo@1.0.0
    python -m herald.cli validate config/herald.yaml
    python -m herald.cli preview gulp-foo 1.0.0
"""

import typer

from herald.cli.run import run_command
from herald.cli.poll import poll_command
from herald.cli.validate import validate_command
from herald.cli.preview import preview_command
from herald.cli.checkpoint import checkpoint_app
from herald.cli.dedup import dedup_app

app = typer.Typer(help="Herald: announce new npm packages on a social feed")

app.command(name="run")(run_command)
app.command(name="poll")(poll_command)
app.command(name="validate")(validate_command)
app.command(name="preview")(preview_command)

app.add_typer(checkpoint_app, name="checkpoint")
app.add_typer(dedup_app, name="dedup")

__all__ = [
    "app",
    "run_command",
    "poll_command",
    "validate_command",
    "preview_command",
    "checkpoint_app",
    "dedup_app",
]
