"""Publish pipeline: dedup + announce.

Announces each package version at most once, ever:
1. Look up `name@version` in the dedup store
2. On a miss, render the message and record the key
3. Only then post to the feed

A failed post after a successful insert is logged and not retried; the
version stays recorded, so it is never announced twice.

Usage:
    publisher = Publisher(PublisherConfig(), store, poster)
    result = await publisher.tweet(pkg)  # message, or False if already seen
"""

from string import Template
from typing import Literal, Optional, Union

import structlog

from herald.models.config import PublisherConfig
from herald.models.dedup import AnnouncedPackage, DedupRecord, PublishStats
from herald.models.package import NormalizedPackage
from herald.observability.metrics import ANNOUNCEMENTS_TOTAL
from herald.services.dedup_service import DedupStore
from herald.services.feeds.base import FeedPoster
from herald.utils.exceptions import FormatError, StoreError

logger = structlog.get_logger()

PublishResult = Union[str, Literal[False]]


def render_message(
    config: PublisherConfig,
    pkg: NormalizedPackage,
    truncation_text: Optional[str] = None,
) -> str:
    """Render the outbound message, truncated to the feed's limit.

    Args:
        config: Template, marker and length settings.
        pkg: Package to announce.
        truncation_text: Marker appended when truncating
            (default: configured marker).

    Returns:
        Message no longer than `config.max_length`.

    Raises:
        FormatError: If the template cannot be rendered.
    """
    maxlen = config.max_length
    marker = config.truncation_text if truncation_text is None else truncation_text
    # The marker itself is capped at the limit
    marker = marker[:maxlen]

    try:
        text = Template(config.template).substitute(pkg.template_data()).strip()
    except (KeyError, ValueError) as e:
        raise FormatError(f"Cannot render template for {pkg.key}: {e!r}")

    if len(text) > maxlen:
        text = text[: max(maxlen - len(marker), 0)].strip() + marker
    return text


class Publisher:
    """Deduplicating announcer for normalized packages.

    Attributes:
        config: Message template and length settings.
        store: Dedup store (lookup + unique insert).
        poster: Feed poster.
        stats: Running publish statistics.
    """

    def __init__(
        self,
        config: Optional[PublisherConfig],
        store: DedupStore,
        poster: FeedPoster,
    ) -> None:
        self.config = config or PublisherConfig()
        self.store = store
        self.poster = poster
        self.stats = PublishStats()

        logger.info(
            "publisher_initialized",
            poster=poster.name,
            max_length=self.config.max_length,
        )

    def create(
        self, pkg: NormalizedPackage, truncation_text: Optional[str] = None
    ) -> str:
        """Render the outbound message (see `render_message`)."""
        return render_message(self.config, pkg, truncation_text)

    async def tweet(self, pkg: NormalizedPackage) -> PublishResult:
        """Announce a package unless it was announced before.

        Args:
            pkg: Package to announce.

        Returns:
            The posted message, or False if the version was already recorded.

        Raises:
            StoreError: If the dedup lookup or insert failed (nothing posted).
            FormatError: If the message could not be rendered (nothing recorded).
        """
        key = pkg.key
        self.stats.checked += 1

        try:
            existing = await self.store.find_by_key(key)
        except StoreError:
            self.stats.errors += 1
            ANNOUNCEMENTS_TOTAL.labels(status="error").inc()
            raise

        if existing is not None:
            return self._duplicate(key)

        try:
            message = self.create(pkg)
        except FormatError:
            self.stats.errors += 1
            ANNOUNCEMENTS_TOTAL.labels(status="error").inc()
            raise

        record = DedupRecord(
            key=key,
            message=message,
            package=AnnouncedPackage(
                name=pkg.name,
                version=pkg.version,
                description=pkg.description,
                url=pkg.url,
            ),
        )

        try:
            inserted = await self.store.insert(record)
        except StoreError:
            self.stats.errors += 1
            ANNOUNCEMENTS_TOTAL.labels(status="error").inc()
            raise

        if not inserted:
            # Lost a race with an overlapping publish of the same version
            return self._duplicate(key)

        try:
            await self.poster.post(message)
        except Exception as e:
            self.stats.post_failures += 1
            ANNOUNCEMENTS_TOTAL.labels(status="post_failed").inc()
            logger.error(
                "announcement_post_failed",
                key=key,
                poster=self.poster.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return message

        self.stats.posted += 1
        ANNOUNCEMENTS_TOTAL.labels(status="posted").inc()
        logger.info("announcement_posted", key=key, message=message)
        return message

    def _duplicate(self, key: str) -> Literal[False]:
        self.stats.duplicates += 1
        ANNOUNCEMENTS_TOTAL.labels(status="duplicate").inc()
        logger.debug("announcement_duplicate", key=key)
        return False
