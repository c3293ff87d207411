from typing import Any, Dict, List

import structlog

from herald.services.feeds.base import FeedPoster

logger = structlog.get_logger()


class DryRunPoster(FeedPoster):
    """Log messages instead of posting them"""

    def __init__(self) -> None:
        self.posted: List[str] = []

    @property
    def name(self) -> str:
        return "dry_run"

    async def post(self, message: str) -> Dict[str, Any]:
        self.posted.append(message)
        logger.info("dry_run_post", message=message, length=len(message))
        return {"provider": self.name, "index": len(self.posted) - 1}
