"""Shared CLI helpers: config loading, error reporting, colored output."""

import functools
from pathlib import Path
from typing import Callable, TypeVar

import structlog
import typer

from herald.models.config import HeraldConfig
from herald.observability.logging import configure_logging
from herald.services.config_manager import ConfigManager, DEFAULT_CONFIG_PATH
from herald.utils.exceptions import ConfigValidationError, HeraldError

# Console logging until a config says otherwise
configure_logging(json_output=False)
logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)

CONFIG_OPTION_DEFAULT = Path(DEFAULT_CONFIG_PATH)


def load_config(config_path: Path) -> HeraldConfig:
    """Load the config file and switch logging to its settings.

    Exits with code 1 (after printing the reason) when the file is missing
    or invalid.
    """
    try:
        config = ConfigManager(config_path=str(config_path)).load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        display_error(f"Configuration Error: {e}")
        raise typer.Exit(code=1)

    configure_logging(
        level=config.logging.level,
        json_output=config.logging.json_output,
    )
    return config


def handle_errors(func: F) -> F:
    """Report a failed command in red and exit with code 1.

    HeraldError (store, feed, registry) is expected and printed without a
    traceback; anything else is logged with one.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except HeraldError as e:
            logger.error("command_failed", error=str(e), error_type=type(e).__name__)
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)
        except Exception as e:
            logger.exception("command_crashed")
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def _display(color: str) -> Callable[[str], None]:
    def display(message: str) -> None:
        typer.secho(message, fg=color)

    return display


display_success = _display(typer.colors.GREEN)
display_warning = _display(typer.colors.YELLOW)
display_error = _display(typer.colors.RED)
display_info = _display(typer.colors.CYAN)
