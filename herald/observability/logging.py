"""Structured logging setup.

Every module logs through `structlog.get_logger()` with snake_case event
names; this module wires the processor chain once per process. Each entry
carries the current correlation ID ("none" outside a tick or publish).

Usage:
    from herald.observability.logging import configure_logging

    configure_logging(level="DEBUG", json_output=False)
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from herald.observability.context import get_correlation_id


def add_correlation_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add `correlation_id` to the entry."""
    event_dict["correlation_id"] = get_correlation_id() or "none"
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog (and stdlib logging, used by APScheduler).

    Args:
        level: Minimum level name; unknown names fall back to INFO
        json_output: One JSON object per line, else colored console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id_processor,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Third-party loggers (apscheduler) go to stderr at the same level
    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")
    logging.getLogger().setLevel(log_level)
