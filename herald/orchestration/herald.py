"""Herald orchestration.

Wires configuration into running components:
    Blocklist -> PackageFilterService -> RegistryWatcher --item--> Publisher

Usage:
    app = HeraldApp(config)
    await app.run()            # daemon: immediate poll + interval job

    await app.setup(publish=False)
    packages = await app.poll_once(commit=False)   # one-off preview
"""

from typing import List, Optional

import structlog

from herald.models.config import FeedConfig, FeedProvider, HeraldConfig
from herald.models.package import NormalizedPackage
from herald.observability.context import correlation_id_context
from herald.scheduling import HeraldScheduler, PollJob
from herald.services.blocklist_service import Blocklist
from herald.services.checkpoint_service import CheckpointService
from herald.services.dedup_service import DiskCacheDedupStore
from herald.services.feeds.base import FeedPoster
from herald.services.feeds.bluesky import BlueskyPoster
from herald.services.feeds.dry_run import DryRunPoster
from herald.services.filter_service import build_filter
from herald.services.publisher_service import Publisher
from herald.services.watcher_service import EVENT_BATCH, EVENT_ITEM, RegistryWatcher
from herald.utils.exceptions import HeraldError

logger = structlog.get_logger()

POLL_JOB_ID = "registry_poll"


def create_poster(config: FeedConfig) -> FeedPoster:
    """Build the configured feed poster."""
    if config.provider == FeedProvider.BLUESKY:
        return BlueskyPoster(config)
    return DryRunPoster()


class HeraldApp:
    """Owns the watcher, publisher and scheduler for one process.

    Attributes:
        config: Validated configuration
        watcher: Registry watcher (after setup)
        publisher: Publisher (after setup, when publishing)
    """

    def __init__(self, config: HeraldConfig) -> None:
        self.config = config
        self.blocklist: Optional[Blocklist] = None
        self.watcher: Optional[RegistryWatcher] = None
        self.publisher: Optional[Publisher] = None
        self.store: Optional[DiskCacheDedupStore] = None
        self.poster: Optional[FeedPoster] = None
        self.scheduler: Optional[HeraldScheduler] = None

    async def setup(self, publish: bool = True) -> RegistryWatcher:
        """Build all components.

        Args:
            publish: Subscribe the publisher to the watcher's items

        Returns:
            The configured watcher
        """
        # Fetched once per process start, never refreshed
        self.blocklist = await Blocklist.load(self.config.blocklist)

        self.watcher = RegistryWatcher(
            config=self.config.watcher,
            filter_func=build_filter(self.config.filter, self.blocklist),
            checkpoint_service=CheckpointService(self.config.watcher.checkpoint_file),
        )
        self.watcher.subscribe(EVENT_BATCH, self._log_batch)

        if publish:
            self.store = DiskCacheDedupStore(self.config.store.path)
            self.poster = create_poster(self.config.feed)
            self.publisher = Publisher(self.config.publisher, self.store, self.poster)
            self.watcher.subscribe(EVENT_ITEM, self.announce)

        logger.info(
            "herald_setup_complete",
            publish=publish,
            feed=self.config.feed.provider.value,
            blocked=len(self.blocklist),
        )
        return self.watcher

    async def announce(self, pkg: NormalizedPackage) -> None:
        """Publish one package; publish errors are logged, never raised."""
        if self.publisher is None:
            raise RuntimeError("setup(publish=True) must run before announce")

        with correlation_id_context(f"publish-{pkg.key}"):
            try:
                result = await self.publisher.tweet(pkg)
            except HeraldError as e:
                logger.error(
                    "announcement_failed",
                    key=pkg.key,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return

            if result:
                logger.info("announced", key=pkg.key, message=result)

    def _log_batch(self, packages: List[NormalizedPackage]) -> None:
        logger.info(
            "batch_received",
            count=len(packages),
            packages=[p.key for p in packages],
        )

    async def poll_once(self, commit: bool = True) -> Optional[List[NormalizedPackage]]:
        """Run a single tick and wait for its publishes."""
        watcher = self.watcher or await self.setup()

        packages = await watcher.poll_once(commit=commit)
        await watcher.drain()
        return packages

    async def run(self) -> None:
        """Run as a daemon until a termination signal arrives."""
        watcher = self.watcher or await self.setup()

        # First poll right away, then on the interval
        await watcher.start()

        self.scheduler = HeraldScheduler()
        self.scheduler.add_job(
            PollJob(watcher),
            job_id=POLL_JOB_ID,
            seconds=self.config.watcher.interval_ms / 1000,
        )

        try:
            await self.scheduler.start()
        finally:
            await self.close()

    async def close(self) -> None:
        """Wait for in-flight publishes and release resources."""
        if self.watcher is not None:
            await self.watcher.drain()
        if self.poster is not None:
            await self.poster.close()
        if self.store is not None:
            self.store.close()
        logger.info("herald_closed")
