"""Observability module.

Provides:
- Correlation ID context management for tick tracing
- Structured logging with context propagation
- Prometheus metrics for monitoring

Usage:
    from herald.observability import POLLS_TOTAL, configure_logging

    configure_logging(level="INFO")
    POLLS_TOTAL.labels(status="success").inc()
"""

from herald.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
)
from herald.observability.logging import (
    configure_logging,
    add_correlation_id_processor,
)
from herald.observability.metrics import (
    POLLS_TOTAL,
    PACKAGES_MATCHED_TOTAL,
    ANNOUNCEMENTS_TOTAL,
    CHECKPOINT_CURSOR,
    SCHEDULER_JOBS,
    POLL_DURATION,
    REGISTRY,
    get_metrics_text,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Logging
    "configure_logging",
    "add_correlation_id_processor",
    # Metrics
    "POLLS_TOTAL",
    "PACKAGES_MATCHED_TOTAL",
    "ANNOUNCEMENTS_TOTAL",
    "CHECKPOINT_CURSOR",
    "SCHEDULER_JOBS",
    "POLL_DURATION",
    "REGISTRY",
    "get_metrics_text",
]
