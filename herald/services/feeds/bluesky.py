"""Bluesky feed poster.

Posts status messages through the AT Protocol XRPC API:
1. `com.atproto.server.createSession` with an app password (cached)
2. `com.atproto.repo.createRecord` with an `app.bsky.feed.post` record

URLs in the message become link facets (byte offsets into the UTF-8 text)
so they render as clickable links.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import structlog

from herald.models.config import FeedConfig
from herald.services.feeds.base import FeedPoster
from herald.utils.exceptions import FeedPostError, TransportError

logger = structlog.get_logger()

_URL_RE = re.compile(r"https?://[^\s]+")


def link_facets(text: str) -> List[Dict[str, Any]]:
    """Build link facets for every URL in `text`.

    Args:
        text: Post text

    Returns:
        Facet list with UTF-8 byte ranges
    """
    facets: List[Dict[str, Any]] = []
    for match in _URL_RE.finditer(text):
        url = match.group(0).rstrip(".,;:!?)")
        start_bytes = len(text[: match.start()].encode("utf-8"))
        end_bytes = start_bytes + len(url.encode("utf-8"))
        facets.append(
            {
                "index": {"byteStart": start_bytes, "byteEnd": end_bytes},
                "features": [{"$type": "app.bsky.richtext.facet#link", "uri": url}],
            }
        )
    return facets


class BlueskyPoster(FeedPoster):
    """Post to a Bluesky account using an app password"""

    def __init__(self, config: FeedConfig):
        if not config.identifier or not config.app_password:
            raise ValueError("Bluesky poster requires identifier and app_password")
        self.config = config
        self.pds = config.pds.rstrip("/")
        self._session_info: Optional[Tuple[str, str]] = None  # (did, accessJwt)
        self._login_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "bluesky"

    async def post(self, message: str) -> Dict[str, Any]:
        did, jwt = await self._login()
        try:
            return await self._create_record(message, did, jwt)
        except FeedPostError as e:
            if e.status not in (400, 401):
                raise
            # Access token expired; log in again once
            logger.info("bluesky_session_refresh", status_code=e.status)
            self._session_info = None
            did, jwt = await self._login()
            return await self._create_record(message, did, jwt)

    async def _login(self) -> Tuple[str, str]:
        async with self._login_lock:
            if self._session_info is not None:
                return self._session_info

            data = await self._xrpc(
                "com.atproto.server.createSession",
                {
                    "identifier": self.config.identifier,
                    "password": self.config.app_password,
                },
            )
            try:
                self._session_info = (data["did"], data["accessJwt"])
            except (KeyError, TypeError):
                raise FeedPostError("Bluesky login response missing did/accessJwt")

            logger.info("bluesky_logged_in", did=self._session_info[0])
            return self._session_info

    async def _create_record(self, text: str, did: str, jwt: str) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "$type": "app.bsky.feed.post",
            "text": text,
            "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        facets = link_facets(text)
        if facets:
            record["facets"] = facets

        payload = {
            "repo": did,
            "collection": "app.bsky.feed.post",
            "record": record,
        }
        result = await self._xrpc("com.atproto.repo.createRecord", payload, jwt=jwt)
        logger.info("bluesky_posted", uri=result.get("uri"))
        return result

    async def _xrpc(
        self, method: str, payload: Dict[str, Any], jwt: Optional[str] = None
    ) -> Dict[str, Any]:
        url = f"{self.pds}/xrpc/{method}"
        headers = {"Content-Type": "application/json"}
        if jwt:
            headers["Authorization"] = f"Bearer {jwt}"

        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload, headers=headers) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise FeedPostError(
                            f"{method} returned HTTP {response.status}: {body[:200]}",
                            status=response.status,
                        )
                    data = await response.json(content_type=None)
                    return data if isinstance(data, dict) else {}

        except asyncio.TimeoutError:
            raise TransportError(
                f"{method} timed out after {self.config.timeout_seconds}s"
            )
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} failed: {e}")
