"""Tests for HeraldScheduler."""

import asyncio
import inspect
from unittest.mock import AsyncMock, MagicMock

import pytest

from herald.observability.metrics import REGISTRY
from herald.scheduling.jobs import PollJob
from herald.scheduling.scheduler import HeraldScheduler, as_coroutine_function


async def noop():
    pass


def _watcher():
    mock_watcher = MagicMock()
    mock_watcher.since = 0
    mock_watcher.poll_once = AsyncMock(return_value=[])
    return mock_watcher


class TestHeraldSchedulerInit:
    """Tests for HeraldScheduler initialization."""

    def test_job_defaults_prevent_overlap(self):
        """Polls must never overlap."""
        scheduler = HeraldScheduler()

        defaults = scheduler.scheduler._job_defaults
        assert defaults["max_instances"] == 1
        assert defaults["coalesce"] is True


class TestAsCoroutineFunction:
    """Tests for job callable resolution."""

    def test_coroutine_function_unchanged(self):
        assert as_coroutine_function(noop) is noop

    def test_job_object_resolved_to_bound_call(self):
        job = PollJob(_watcher())

        func = as_coroutine_function(job)

        assert inspect.iscoroutinefunction(func)
        assert func.__self__ is job

    def test_plain_callable_unchanged(self):
        func = MagicMock()
        assert as_coroutine_function(func) is func


class TestAddJob:
    """Tests for add_job method."""

    def test_add_interval_job(self):
        scheduler = HeraldScheduler()

        job_id = scheduler.add_job(noop, job_id="registry_poll", seconds=900)

        assert job_id == "registry_poll"
        assert len(scheduler.scheduler.get_jobs()) == 1
        assert (
            REGISTRY.get_sample_value(
                "herald_scheduler_jobs", {"status": "scheduled"}
            )
            == 1
        )

    def test_add_job_replaces_existing(self):
        scheduler = HeraldScheduler()

        scheduler.add_job(noop, job_id="same_id", seconds=60)
        scheduler.add_job(noop, job_id="same_id", seconds=120)

        assert len(scheduler.scheduler.get_jobs()) == 1


class TestListeners:
    """Tests for job event listeners."""

    def test_listeners_do_not_raise(self):
        scheduler = HeraldScheduler()
        event = MagicMock(job_id="registry_poll", exception=RuntimeError("x"))

        scheduler._on_job_submitted(event)
        scheduler._on_job_finished(event)
        scheduler._on_job_missed(event)

        assert scheduler._in_flight == 0


class TestRunning:
    """Jobs run through APScheduler's own executor."""

    @pytest.mark.asyncio
    async def test_poll_job_awaited_on_every_interval(self):
        watcher = _watcher()
        job = PollJob(watcher)
        scheduler = HeraldScheduler()
        scheduler.add_job(job, job_id="registry_poll", seconds=0.2)

        task = asyncio.create_task(scheduler.start())
        await asyncio.sleep(1)
        await scheduler.shutdown()
        await task

        assert watcher.poll_once.await_count >= 2
        assert job.run_count >= 2
        assert not scheduler.scheduler.running

    @pytest.mark.asyncio
    async def test_failing_job_keeps_schedule(self):
        watcher = _watcher()
        watcher.poll_once.side_effect = RuntimeError("boom")
        scheduler = HeraldScheduler()
        scheduler.add_job(PollJob(watcher), job_id="registry_poll", seconds=0.2)

        task = asyncio.create_task(scheduler.start())
        await asyncio.sleep(1)
        await scheduler.shutdown()
        await task

        assert watcher.poll_once.await_count >= 2

    @pytest.mark.asyncio
    async def test_shutdown_before_start_is_noop(self):
        scheduler = HeraldScheduler()

        await scheduler.shutdown()

        assert not scheduler.scheduler.running
