"""Prometheus metrics definitions for the herald.

Defines counters, gauges, and histograms for monitoring:
- Poll outcomes and latency
- Matched packages
- Announcement outcomes
- Checkpoint progress
- Scheduler job status

Usage:
    from herald.observability.metrics import POLLS_TOTAL, POLL_DURATION

    POLLS_TOTAL.labels(status="success").inc()

    with POLL_DURATION.time():
        await watcher.poll_once()

Metrics can be exposed with `herald run --metrics-port 9100`.
"""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    generate_latest,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

POLLS_TOTAL = Counter(
    name="herald_polls_total",
    documentation="Registry polls by outcome",
    labelnames=["status"],  # success, transport_error, bad_response
    registry=REGISTRY,
)

PACKAGES_MATCHED_TOTAL = Counter(
    name="herald_packages_matched_total",
    documentation="Packages that passed the filter",
    registry=REGISTRY,
)

ANNOUNCEMENTS_TOTAL = Counter(
    name="herald_announcements_total",
    documentation="Publish attempts by outcome",
    labelnames=["status"],  # posted, duplicate, post_failed, error
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

CHECKPOINT_CURSOR = Gauge(
    name="herald_checkpoint_cursor_ms",
    documentation="Current checkpoint cursor (epoch milliseconds)",
    registry=REGISTRY,
)

SCHEDULER_JOBS = Gauge(
    name="herald_scheduler_jobs",
    documentation="Number of scheduled jobs",
    labelnames=["status"],  # scheduled, running
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

POLL_DURATION = Histogram(
    name="herald_poll_duration_seconds",
    documentation="Time spent in one poll-filter-emit cycle",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Render all metrics in Prometheus text format."""
    return generate_latest(REGISTRY)

