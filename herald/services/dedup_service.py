"""
Announcement dedup store.

Keeps one durable record per announced package version (`name@version`).
Once a key is recorded it is never announced again, across restarts.

The disk-backed implementation relies on `diskcache.Cache.add`, which only
writes when the key is absent and does so inside a single SQLite
transaction, so two overlapping publishes cannot both record the same key.
"""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, Union

import diskcache
import structlog

from herald.models.dedup import DedupRecord
from herald.utils.exceptions import StoreError

logger = structlog.get_logger()


class DedupStore(Protocol):
    """Lookup + insert port used by the publisher."""

    async def find_by_key(self, key: str) -> Optional[DedupRecord]:
        """Return the record for `key`, or None.

        Raises:
            StoreError: If the store cannot be read
        """
        ...

    async def insert(self, record: DedupRecord) -> bool:
        """Insert a record if its key is new.

        Returns:
            True if inserted, False if the key already existed

        Raises:
            StoreError: If the store cannot be written
        """
        ...


class DiskCacheDedupStore:
    """
    Dedup store backed by a diskcache directory.

    Records are stored without expiry. diskcache calls are blocking, so they
    run in the default executor.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the store.

        Args:
            path: Directory holding the cache database
        """
        self.path = Path(path)
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            self._cache = diskcache.Cache(str(self.path))
        except Exception as e:
            raise StoreError(f"Cannot open dedup store at {self.path}: {e}")

        logger.info("dedup_store_initialized", path=str(self.path))

    async def find_by_key(self, key: str) -> Optional[DedupRecord]:
        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(None, lambda: self._cache.get(key))
        except Exception as e:
            logger.error("dedup_lookup_error", key=key, error=str(e))
            raise StoreError(f"Dedup lookup failed for {key}: {e}")

        if raw is None:
            return None

        try:
            return DedupRecord.model_validate_json(raw)
        except Exception as e:
            # A record exists, even if unreadable; treat it as seen
            logger.warning("dedup_record_unreadable", key=key, error=str(e))
            return DedupRecord(
                key=key, message="", package={"name": key, "version": ""}
            )

    async def insert(self, record: DedupRecord) -> bool:
        payload = record.model_dump_json()
        loop = asyncio.get_running_loop()
        try:
            added = await loop.run_in_executor(
                None, lambda: self._cache.add(record.key, payload)
            )
        except Exception as e:
            logger.error("dedup_insert_error", key=record.key, error=str(e))
            raise StoreError(f"Dedup insert failed for {record.key}: {e}")

        if not added:
            logger.info("dedup_key_exists", key=record.key)
        return bool(added)

    async def remove(self, key: str) -> bool:
        """Forget a key so the version can be announced again."""
        loop = asyncio.get_running_loop()
        try:
            deleted = await loop.run_in_executor(None, lambda: self._cache.delete(key))
            return bool(deleted)
        except Exception as e:
            raise StoreError(f"Dedup delete failed for {key}: {e}")

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        self._cache.close()
