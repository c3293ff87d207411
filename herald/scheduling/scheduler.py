"""Interval scheduling for the registry poll.

HeraldScheduler runs the poll job on APScheduler's AsyncIOScheduler and
blocks until SIGINT/SIGTERM (or `shutdown()`).

Usage:
    scheduler = HeraldScheduler()
    scheduler.add_job(PollJob(watcher), job_id="registry_poll", seconds=900)

    # Blocks until a stop signal arrives
    await scheduler.start()
"""

import asyncio
import inspect
import signal
from typing import Callable

import structlog
from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MISSED,
    EVENT_JOB_SUBMITTED,
    JobExecutionEvent,
    JobSubmissionEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from herald.observability.metrics import SCHEDULER_JOBS

logger = structlog.get_logger()

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def as_coroutine_function(func: Callable) -> Callable:
    """Return the coroutine function to hand to AsyncIOScheduler.

    AsyncIOScheduler awaits only coroutine functions; any other callable runs
    in a worker thread. Job objects with an async `__call__` are registered
    through the bound method.
    """
    if inspect.iscoroutinefunction(func):
        return func
    call = getattr(func, "__call__", None)
    if inspect.iscoroutinefunction(call):
        return call
    return func


class HeraldScheduler:
    """Runs jobs on a fixed interval inside the current event loop.

    Jobs default to `max_instances=1` and `coalesce=True`: a run that is due
    while the previous one is still going is skipped, and missed runs
    collapse into one. Two polls never write the checkpoint at once.
    """

    def __init__(
        self,
        timezone: str = "UTC",
        max_instances: int = 1,
        coalesce: bool = True,
        misfire_grace_time: int = 300,
    ):
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                "max_instances": max_instances,
                "coalesce": coalesce,
                "misfire_grace_time": misfire_grace_time,
            },
        )
        self._stopped = asyncio.Event()
        self._in_flight = 0

        self.scheduler.add_listener(self._on_job_submitted, EVENT_JOB_SUBMITTED)
        self.scheduler.add_listener(
            self._on_job_finished, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
        )
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

    def add_job(self, func: Callable, job_id: str, seconds: float) -> str:
        """Run `func` every `seconds`, first run one interval from now.

        Re-adding an existing `job_id` replaces the job.

        Returns:
            The job id
        """
        self.scheduler.add_job(
            as_coroutine_function(func),
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            name=job_id,
            replace_existing=True,
        )
        logger.info("job_added", job_id=job_id, interval_seconds=seconds)
        self._update_metrics()
        return job_id

    async def start(self) -> None:
        """Start the scheduler and block until shutdown."""
        loop = asyncio.get_running_loop()
        for sig in STOP_SIGNALS:
            loop.add_signal_handler(sig, self._stopped.set)

        self._stopped.clear()
        self.scheduler.start()
        logger.info("scheduler_started", jobs=len(self.scheduler.get_jobs()))

        try:
            await self._stopped.wait()
        finally:
            for sig in STOP_SIGNALS:
                loop.remove_signal_handler(sig)
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")

    async def shutdown(self) -> None:
        """Ask a running `start()` to return."""
        logger.info("scheduler_shutting_down")
        self._stopped.set()

    def _on_job_submitted(self, event: JobSubmissionEvent) -> None:
        self._in_flight += 1
        self._update_metrics()

    def _on_job_finished(self, event: JobExecutionEvent) -> None:
        self._in_flight = max(self._in_flight - 1, 0)
        if event.exception is not None:
            logger.error(
                "job_failed",
                job_id=event.job_id,
                exception=str(event.exception),
                traceback=event.traceback,
            )
        self._update_metrics()

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        logger.warning(
            "job_missed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )

    def _update_metrics(self) -> None:
        SCHEDULER_JOBS.labels(status="scheduled").set(len(self.scheduler.get_jobs()))
        SCHEDULER_JOBS.labels(status="running").set(self._in_flight)
