"""Correlation ID context management for tick tracing.

Provides ContextVar-based storage for correlation IDs that propagate
automatically across async boundaries, so every log line emitted while a
poll runs (and every publish task it spawns) carries the same ID.

Usage:
    from herald.observability.context import (
        set_correlation_id,
        get_correlation_id,
        correlation_id_context,
    )

    # At the tick boundary (scheduled job, CLI command)
    corr_id = set_correlation_id("poll-20250203-060000")

    # Scoped IDs for nested work
    with correlation_id_context(f"publish-{pkg.key}"):
        await publisher.tweet(pkg)
"""

import uuid
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Generator

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        corr_id: Optional correlation ID. If None, generates a UUID4.

    Returns:
        The correlation ID that was set.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    _correlation_id_var.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Reset the correlation ID to None."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(
    corr_id: Optional[str] = None,
) -> Generator[str, None, None]:
    """Scoped correlation ID; the previous value is restored on exit.

    Args:
        corr_id: Optional correlation ID. If None, generates a UUID4.

    Yields:
        The correlation ID in effect inside the block.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    token = _correlation_id_var.set(corr_id)
    try:
        yield corr_id
    finally:
        _correlation_id_var.reset(token)
