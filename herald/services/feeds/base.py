from abc import ABC, abstractmethod
from typing import Any, Dict


class FeedPoster(ABC):
    """Abstract base class for social feed posters

    All posters must implement this interface so the publisher can announce
    packages without knowing which feed it talks to.
    """

    @abstractmethod
    async def post(self, message: str) -> Dict[str, Any]:
        """Publish a status message

        Args:
            message: Fully formatted status text

        Returns:
            Provider acknowledgement (post URI, id, ...)

        Raises:
            FeedPostError: If the feed rejected the post
            TransportError: If the feed could not be reached
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification"""
        pass

    async def close(self) -> None:
        """Release any held resources"""
        return None
