"""
Checkpoint service for resumable registry polling.

Persists the watcher's cursor (epoch milliseconds of the last processed
point in the registry change feed) so a restart resumes exactly where the
previous process stopped. Uses atomic file writes to prevent corruption.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog

from herald.models.checkpoint import Checkpoint

logger = structlog.get_logger()


def resolve_initial_checkpoint(
    persisted: Optional[int], lookback_ms: int, now_ms: int
) -> int:
    """
    Decide where the first poll starts.

    A persisted checkpoint always wins; the lookback window is only used
    when nothing was persisted.

    Args:
        persisted: Cursor read from durable storage, if any
        lookback_ms: Configured lookback window in milliseconds
        now_ms: Current time in epoch milliseconds

    Returns:
        Cursor for the first poll
    """
    if persisted is not None:
        return persisted
    return now_ms - lookback_ms


class CheckpointService:
    """
    Read and write the watcher checkpoint file.

    Accepts both the JSON format written by this service and the legacy
    plain-integer format.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize checkpoint service.

        Args:
            path: Checkpoint file location
        """
        self.path = Path(path)

        logger.info("checkpoint_service_initialized", path=str(self.path))

    def load(self) -> Optional[Checkpoint]:
        """
        Load the persisted checkpoint.

        Returns:
            Checkpoint if a valid one exists, None otherwise
        """
        if not self.path.exists():
            logger.debug("no_checkpoint_found", path=str(self.path))
            return None

        try:
            raw = self.path.read_text(encoding="utf-8").strip()
            if not raw:
                return None

            if raw.lstrip("-").isdigit():
                checkpoint = Checkpoint(cursor=int(raw))
            else:
                checkpoint = Checkpoint(**json.loads(raw))

            logger.info(
                "checkpoint_loaded",
                path=str(self.path),
                cursor=checkpoint.cursor,
            )
            return checkpoint

        except Exception as e:
            logger.error(
                "checkpoint_load_error",
                path=str(self.path),
                error=str(e),
            )
            return None

    def read(self) -> Optional[int]:
        """Persisted cursor, or None when absent or unreadable."""
        checkpoint = self.load()
        return checkpoint.cursor if checkpoint else None

    def write(self, cursor: int) -> bool:
        """
        Save checkpoint atomically.

        Args:
            cursor: Cursor to persist (epoch milliseconds)

        Returns:
            True if saved successfully
        """
        try:
            checkpoint = Checkpoint(cursor=cursor)

            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Atomic write: write to temp file, then rename
            temp_file = self.path.with_name(self.path.name + ".tmp")

            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(checkpoint.model_dump(mode="json"), f, indent=2)

            temp_file.replace(self.path)

            logger.debug("checkpoint_saved", path=str(self.path), cursor=cursor)
            return True

        except Exception as e:
            logger.error(
                "checkpoint_save_error",
                path=str(self.path),
                cursor=cursor,
                error=str(e),
            )
            return False

    def clear(self) -> bool:
        """
        Delete the checkpoint file.

        Returns:
            True if cleared (or nothing to clear)
        """
        if not self.path.exists():
            return True

        try:
            self.path.unlink()
            logger.info("checkpoint_cleared", path=str(self.path))
            return True

        except Exception as e:
            logger.error("checkpoint_clear_error", path=str(self.path), error=str(e))
            return False
