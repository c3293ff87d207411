"""Scheduling module.

Provides:
- APScheduler wrapper for the polling loop
- Job definitions (registry poll)

Usage:
    from herald.scheduling import HeraldScheduler, PollJob

    scheduler = HeraldScheduler()
    scheduler.add_job(PollJob(watcher), job_id="registry_poll", seconds=900)
    await scheduler.start()
"""

from herald.scheduling.scheduler import HeraldScheduler
from herald.scheduling.jobs import BaseJob, PollJob

__all__ = [
    "HeraldScheduler",
    "BaseJob",
    "PollJob",
]
