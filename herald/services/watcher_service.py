"""
Checkpointed registry watcher.

Each tick:
1. Fetch documents updated since the checkpoint
2. Normalize and filter them (metadata keys starting with "_" are skipped)
3. Emit `batch` with every survivor, then `item` once per survivor
4. Advance the checkpoint to the response's `_updated` cursor and persist it

Transport failures and bad responses skip the tick without touching the
checkpoint; the next tick retries the same window.
"""

import asyncio
import inspect
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

import structlog

from herald.models.config import WatcherConfig
from herald.models.package import NormalizedPackage
from herald.observability.metrics import (
    CHECKPOINT_CURSOR,
    PACKAGES_MATCHED_TOTAL,
    POLL_DURATION,
    POLLS_TOTAL,
)
from herald.services.checkpoint_service import (
    CheckpointService,
    resolve_initial_checkpoint,
)
from herald.services.registry_client import RegistryClient
from herald.utils.duration import now_ms
from herald.utils.exceptions import BadResponseError, TransportError
from herald.utils.package_utils import nice_package

logger = structlog.get_logger()

PackageFilter = Callable[[NormalizedPackage], bool]

EVENT_BATCH = "batch"
EVENT_ITEM = "item"
EVENTS = (EVENT_BATCH, EVENT_ITEM)

METADATA_PREFIX = "_"
CURSOR_KEY = "_updated"


def accept_all(pkg: NormalizedPackage) -> bool:
    return True


def extract_packages(
    data: Mapping[str, Any], filter_func: PackageFilter = accept_all
) -> List[NormalizedPackage]:
    """
    Normalize and filter every package document in a registry response.

    Args:
        data: Keyed registry response
        filter_func: Predicate deciding which packages survive

    Returns:
        Surviving packages in response order
    """
    packages: List[NormalizedPackage] = []

    for key, raw in data.items():
        if key.startswith(METADATA_PREFIX):
            continue

        try:
            pkg = nice_package(key, raw)
        except ValueError as e:
            logger.warning("package_normalize_skipped", key=key, error=str(e))
            continue

        if filter_func(pkg):
            packages.append(pkg)

    return packages


class RegistryWatcher:
    """
    Poll the registry for packages updated since the last checkpoint.

    Consumers subscribe to the `batch` and `item` events. Coroutine handlers
    are scheduled as tasks so a tick never waits on downstream publishing.
    """

    def __init__(
        self,
        config: Optional[WatcherConfig] = None,
        filter_func: Optional[PackageFilter] = None,
        client: Optional[RegistryClient] = None,
        checkpoint_service: Optional[CheckpointService] = None,
    ):
        """
        Initialize the watcher.

        Args:
            config: Watcher configuration (defaults for everything)
            filter_func: Package predicate (default: accept all)
            client: Registry client (default: built from config)
            checkpoint_service: Checkpoint persistence (default: config file)
        """
        self.config = config or WatcherConfig()
        self.filter_func: PackageFilter = filter_func or accept_all
        self.client = client or RegistryClient(self.config)
        self.checkpoint_service = checkpoint_service or CheckpointService(
            self.config.checkpoint_file
        )

        self.since: Optional[int] = None
        self._handlers: Dict[str, List[Callable[..., Any]]] = {e: [] for e in EVENTS}
        self._pending: Set["asyncio.Task[Any]"] = set()

    # ==================== Events ====================

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        """Register a handler for `batch` or `item`."""
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event!r} (expected one of {EVENTS})")
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[..., Any]) -> None:
        """Remove a previously registered handler."""
        if event in self._handlers and handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    def _emit(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers[event]):
            try:
                result = handler(payload)
            except Exception as e:
                logger.error(
                    "event_handler_failed", watcher_event=event, error=str(e)
                )
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_handler_done)

    def _on_handler_done(self, task: "asyncio.Task[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "event_handler_failed",
                error=str(error),
                error_type=type(error).__name__,
            )

    async def drain(self) -> None:
        """Wait for outstanding handler tasks to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_handlers(self) -> int:
        return len(self._pending)

    # ==================== Polling ====================

    def initialize(self) -> int:
        """
        Resolve the starting checkpoint.

        Returns:
            The cursor the next poll will use
        """
        persisted = self.checkpoint_service.read()
        self.since = resolve_initial_checkpoint(
            persisted, self.config.since_ms, now_ms()
        )
        CHECKPOINT_CURSOR.set(self.since)

        logger.info(
            "watcher_initialized",
            since=self.since,
            resumed=persisted is not None,
            registry=self.config.registry,
            interval=self.config.interval,
        )
        return self.since

    async def start(self) -> Optional[List[NormalizedPackage]]:
        """Initialize the checkpoint and poll once immediately."""
        self.initialize()
        return await self.poll_once()

    async def poll_once(self, commit: bool = True) -> Optional[List[NormalizedPackage]]:
        """
        Run one poll-filter-emit cycle.

        Args:
            commit: Advance and persist the checkpoint after emitting

        Returns:
            Surviving packages, or None if the tick was skipped
        """
        since = self.since if self.since is not None else self.initialize()
        start = time.monotonic()
        logger.info("poll_started", since=since)

        try:
            data = await self.client.fetch_since(since)
        except TransportError as e:
            POLLS_TOTAL.labels(status="transport_error").inc()
            logger.error("poll_transport_error", since=since, error=str(e))
            return None
        except BadResponseError as e:
            POLLS_TOTAL.labels(status="bad_response").inc()
            logger.error(
                "poll_bad_response", since=since, status=e.status, error=str(e)
            )
            return None

        cursor = self._cursor_from(data)
        if cursor is None:
            POLLS_TOTAL.labels(status="bad_response").inc()
            logger.warning(
                "poll_no_data",
                since=since,
                body_type=type(data).__name__,
            )
            return None

        packages = extract_packages(data, self.filter_func)

        self._emit(EVENT_BATCH, packages)
        for pkg in packages:
            self._emit(EVENT_ITEM, pkg)

        if commit:
            self._advance(since, cursor)

        duration = time.monotonic() - start
        POLLS_TOTAL.labels(status="success").inc()
        PACKAGES_MATCHED_TOTAL.inc(len(packages))
        POLL_DURATION.observe(duration)

        logger.info(
            "poll_completed",
            since=since,
            updated=cursor,
            documents=sum(1 for k in data if not k.startswith(METADATA_PREFIX)),
            matched=len(packages),
            duration_seconds=round(duration, 3),
        )
        return packages

    @staticmethod
    def _cursor_from(data: Any) -> Optional[int]:
        """Updated-through cursor of a well-formed response, else None."""
        if not data or not isinstance(data, Mapping):
            return None
        cursor = data.get(CURSOR_KEY)
        if isinstance(cursor, bool) or not isinstance(cursor, (int, float)):
            return None
        return int(cursor)

    def _advance(self, current: int, cursor: int) -> None:
        if cursor < current:
            logger.warning(
                "checkpoint_regression_ignored", current=current, received=cursor
            )
            cursor = current

        self.since = cursor
        CHECKPOINT_CURSOR.set(cursor)

        if not self.checkpoint_service.write(cursor):
            logger.warning("checkpoint_not_persisted", cursor=cursor)
