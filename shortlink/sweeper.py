"""Periodic expiry sweep for old short links."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .database.base import MappingStoreBase
from .database.cache import RedisCache
from .database.models import utcnow
from .errors import StorageFailure


class ExpirySweeper:
    """Deletes mappings older than the retention margin on a fixed delay.

    One cycle runs, then the sweeper waits ``interval_seconds`` before the
    next. Cycles never overlap: the periodic loop and manual ``run_once``
    calls share a lock. A failed cycle is logged and the loop carries on.
    """

    def __init__(
        self,
        store: MappingStoreBase,
        retention: timedelta = timedelta(days=30),
        interval_seconds: float = 60.0,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = utcnow,
        cache: Optional[RedisCache] = None,
    ):
        """Initialize expiry sweeper.

        Args:
            store: Store to sweep
            retention: Mappings older than this are deleted
            interval_seconds: Delay between the end of one cycle and the next
            logger: Optional logger
            clock: Source of the current time (aware UTC)
            cache: Cache to purge when a sweep outruns its entry TTLs
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.store = store
        self.retention = retention
        self.interval_seconds = interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.cache = cache

        self.last_run_at: Optional[datetime] = None
        self.last_deleted: Optional[int] = None
        self.consecutive_failures = 0

        self._lock = asyncio.Lock()
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, retention: Optional[timedelta] = None) -> Optional[int]:
        """Run one sweep cycle.

        Args:
            retention: Optional override of the configured retention margin.
                A shorter override also purges the cache, whose entries were
                sized to the configured margin.

        Returns:
            Number of deleted mappings, or None if the cycle failed

        Raises:
            ValueError: If the override is not positive
        """
        if retention is not None and retention <= timedelta(0):
            raise ValueError("retention must be positive")

        async with self._lock:
            now = self.clock()
            cutoff = now - (self.retention if retention is None else retention)
            self.last_run_at = now

            try:
                deleted = await self.store.delete_older_than(cutoff)
            except StorageFailure as e:
                self.consecutive_failures += 1
                self.logger.error(
                    f"Expiry sweep failed ({self.consecutive_failures} in a row): {e}"
                )
                return None

            self.consecutive_failures = 0
            self.last_deleted = deleted
            if deleted and self.cache and retention is not None and retention < self.retention:
                await self.cache.purge()
            self.logger.info(f"Expiry sweep removed {deleted} mappings created before {cutoff.isoformat()}")
            return deleted

    async def _run(self) -> None:
        self.logger.info(
            f"Expiry sweeper started (interval={self.interval_seconds}s, retention={self.retention})"
        )
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                self.consecutive_failures += 1
                self.logger.exception(
                    f"Unexpected error in expiry sweep ({self.consecutive_failures} in a row)"
                )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

        self.logger.info("Expiry sweeper stopped")

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.running:
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        """Signal the sweep loop to stop and wait for it to finish."""
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None

    def status(self) -> Dict[str, Any]:
        """Snapshot of the sweeper state."""
        return {
            "running": self.running,
            "last_run_at": self.last_run_at,
            "last_deleted": self.last_deleted,
            "consecutive_failures": self.consecutive_failures,
        }
