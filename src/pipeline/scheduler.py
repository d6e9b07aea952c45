"""Hourly background import running inside the API process."""

import asyncio
from datetime import datetime, timedelta

from src.utils.logger import get_logger

from .importer import AutoImporter

logger = get_logger(__name__)


def seconds_until_next_hour(now: datetime | None = None) -> float:
    """Seconds from ``now`` until the next top of the hour."""
    now = now or datetime.now()
    next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (next_hour - now).total_seconds()


class ImportScheduler:
    """Triggers :class:`AutoImporter` at the top of every hour.

    Each run happens in a worker thread; failures are logged and the
    schedule keeps going.

    Args:
        importer: Batch importer to run.
        interval: Seconds between runs when not aligned to the clock.
        align_to_hour: Fire at every top of the hour, recomputing the
            wait after each run so batch duration does not shift the
            schedule. ``interval`` is unused in this mode.
    """

    def __init__(
        self,
        importer: AutoImporter,
        interval: float = 3600,
        align_to_hour: bool = True,
    ) -> None:
        self.importer = importer
        self.interval = interval
        self.align_to_hour = align_to_hour
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Import scheduler started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Import scheduler stopped")

    async def run_once(self) -> None:
        """Run one scheduled import, logging instead of raising on failure."""
        logger.info("Running scheduled import...")
        try:
            batch = await asyncio.to_thread(self.importer.run)
        except Exception as exc:
            logger.error("Scheduled import failed: %s", exc)
            return
        logger.info(
            "Scheduled import done: %d processed, %d failed",
            batch.processed,
            batch.failed,
        )

    def _next_delay(self) -> float:
        if not self.align_to_hour:
            return self.interval
        delay = seconds_until_next_hour()
        # A timer that wakes just before the hour must not fire twice.
        return delay if delay >= 1 else delay + 3600

    async def _run_loop(self) -> None:
        while not await self._wait(self._next_delay()):
            await self.run_once()

    async def _wait(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return ``True`` if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
