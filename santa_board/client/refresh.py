"""Periodic board refresh."""
import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from santa_board.core.environs import POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class Refresher:
    """
    Re-fetches shared state on a fixed interval while a board is open.

    ``start`` schedules ``tick`` on an ``AsyncIOScheduler`` and must be
    called from a running event loop; ``cancel`` removes the job when the
    board is torn down. Tests call ``tick`` directly.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        interval_seconds: float = POLL_INTERVAL_SECONDS,
        scheduler: Optional[AsyncIOScheduler] = None,
        job_id: str = "gift_board_refresh",
    ):
        if interval_seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        self._refresh = refresh
        self.interval_seconds = interval_seconds
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or AsyncIOScheduler()
        self.job_id = job_id
        self._job = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._job is not None

    async def tick(self) -> None:
        """One refresh; failures are logged and the next tick retries"""
        self.ticks += 1
        try:
            await self._refresh()
        except Exception as e:
            self.failures += 1
            logger.error("Board refresh failed: %s", e)

    def start(self) -> None:
        if self._job is not None:
            return
        self._job = self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Refresher started, polling every %s seconds", self.interval_seconds)

    def cancel(self) -> None:
        if self._job is not None:
            self._job.remove()
            self._job = None
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Refresher cancelled")
