"""Scheduled job definitions.

Provides:
- BaseJob: correlation ID, timing and run statistics for any async job
- PollJob: one registry poll per run

Usage:
    from herald.scheduling.jobs import PollJob

    job = PollJob(watcher)
    await job()
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from herald.observability.context import set_correlation_id, clear_correlation_id
from herald.services.watcher_service import RegistryWatcher

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseJob(ABC):
    """Base class for scheduled jobs.

    Provides common functionality:
    - Correlation ID management
    - Error handling and logging
    - Execution timing
    """

    def __init__(self, name: str):
        """Initialize job.

        Args:
            name: Job name for logging
        """
        self.name = name
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.run_count: int = 0
        self.error_count: int = 0

    async def __call__(self) -> Any:
        """Execute the job with correlation ID and error handling."""
        start = time.time()
        corr_id = set_correlation_id(
            f"{self.name}-{_utcnow().strftime('%Y%m%d-%H%M%S')}"
        )

        logger.debug("job_starting", job_name=self.name)

        try:
            result = await self.run()

            self.last_run = _utcnow()
            self.last_success = self.last_run
            self.run_count += 1

            logger.debug(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )

            return result

        except Exception as e:
            self.last_run = _utcnow()
            self.error_count += 1

            logger.error(
                "job_failed",
                job_name=self.name,
                error=str(e),
                correlation_id=corr_id,
                exc_info=True,
            )
            raise

        finally:
            clear_correlation_id()

    @abstractmethod
    async def run(self) -> Any:
        """Execute the job logic."""
        pass  # pragma: no cover (abstract method)

    def get_status(self) -> Dict[str, Any]:
        """Get job status information."""
        return {
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": (
                self.last_success.isoformat() if self.last_success else None
            ),
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class PollJob(BaseJob):
    """Registry poll job.

    A skipped tick (registry unreachable, bad response) is still a
    successful run: the watcher has already logged it and the next run
    retries the same window.
    """

    def __init__(self, watcher: RegistryWatcher):
        super().__init__("registry_poll")
        self.watcher = watcher
        self.skipped_count: int = 0

    async def run(self) -> Optional[int]:
        """Poll once.

        Returns:
            Number of matched packages, or None if the tick was skipped
        """
        packages = await self.watcher.poll_once()
        if packages is None:
            self.skipped_count += 1
            return None
        return len(packages)

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status["skipped_count"] = self.skipped_count
        status["since"] = self.watcher.since
        return status
