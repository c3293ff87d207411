"""Remote package blocklist.

Some ecosystems publish a list of packages that should never be promoted
(for example gulp's plugin blacklist, a JSON object keyed by package name).
The list is fetched once when the process starts and handed to the filter
builder explicitly; it is never refreshed while the process runs.

Usage:
    blocklist = await Blocklist.load(config.blocklist)
    predicate = build_filter(config.filter, blocklist)
"""

import asyncio
from typing import Iterable, Optional

import aiohttp
import structlog

from herald.models.config import BlocklistConfig

logger = structlog.get_logger()


class Blocklist:
    """Immutable set of blocked package names."""

    def __init__(self, names: Optional[Iterable[str]] = None, source: str = "static"):
        self._names = frozenset(n for n in (names or []) if isinstance(n, str))
        self.source = source

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def is_blocked(self, name: str) -> bool:
        return name in self._names

    @property
    def names(self) -> list:
        return sorted(self._names)

    @classmethod
    def empty(cls) -> "Blocklist":
        return cls()

    @classmethod
    async def load(cls, config: BlocklistConfig) -> "Blocklist":
        """Fetch the blocklist once.

        A missing URL yields an empty blocklist. Fetch failures are logged
        and also yield an empty blocklist: announcing a blocked package is
        preferable to not announcing anything.

        Args:
            config: Blocklist configuration

        Returns:
            Loaded (possibly empty) Blocklist
        """
        if not config.url:
            logger.debug("blocklist_disabled")
            return cls.empty()

        timeout = aiohttp.ClientTimeout(total=config.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(config.url) as response:
                    if response.status != 200:
                        logger.error(
                            "blocklist_fetch_failed",
                            url=config.url,
                            status_code=response.status,
                        )
                        return cls.empty()
                    data = await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("blocklist_fetch_failed", url=config.url, error=str(e))
            return cls.empty()

        if isinstance(data, dict):
            names: Iterable[str] = data.keys()
        elif isinstance(data, list):
            names = data
        else:
            logger.error(
                "blocklist_unexpected_shape",
                url=config.url,
                body_type=type(data).__name__,
            )
            return cls.empty()

        blocklist = cls(names, source=config.url)
        logger.info("blocklist_loaded", url=config.url, entries=len(blocklist))
        return blocklist
