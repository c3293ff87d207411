"""Registry change-feed client.

Fetches the documents updated since a cursor from an npm-style registry
(`GET <registry>/-/all/since/?stale=update_after&startkey=<cursor>`).

Failures are reported as typed exceptions so the watcher can absorb them at
the tick boundary:
- TransportError: connection problems and timeouts
- BadResponseError: non-200 status or a body that is not JSON
"""

import asyncio
from typing import Any, Optional

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from herald.models.config import WatcherConfig
from herald.utils.exceptions import BadResponseError, RetryableError, TransportError

logger = structlog.get_logger()


class RegistryClient:
    """Async client for the registry's since-query endpoint"""

    def __init__(self, config: Optional[WatcherConfig] = None):
        self.config = config or WatcherConfig()

    @property
    def url(self) -> str:
        return self.config.query_url

    async def fetch_since(self, since: int) -> Any:
        """Fetch documents updated since `since`.

        Retryable (transport) errors are retried up to `fetch_attempts` times with
        exponential backoff; bad responses are not retried.

        Args:
            since: Lower bound of the change window (epoch milliseconds)

        Returns:
            Decoded JSON body (may be None or any JSON shape)

        Raises:
            TransportError: Network failure or timeout on every attempt
            BadResponseError: Non-200 status or undecodable body
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.fetch_attempts),
            wait=wait_exponential(
                multiplier=self.config.retry_backoff_seconds, max=30
            ),
            retry=retry_if_exception_type(RetryableError),
            reraise=True,
        ):
            with attempt:
                return await self._request(since)

    async def _request(self, since: int) -> Any:
        params = {"stale": "update_after", "startkey": str(since)}
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        logger.debug("registry_request", url=self.url, since=since)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(
                    self.url,
                    params=params,
                    headers={"Accept": "application/json"},
                ) as response:
                    if response.status != 200:
                        raise BadResponseError(
                            f"bad status code: {response.status}",
                            status=response.status,
                        )
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise BadResponseError(f"invalid JSON body: {e}")

        except asyncio.TimeoutError:
            raise TransportError(
                f"registry request timed out after {self.config.timeout_seconds}s"
            )
        except aiohttp.ClientError as e:
            raise TransportError(f"registry request failed: {e}")
