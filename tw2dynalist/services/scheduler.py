"""APScheduler integration for bookmark polling."""

from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

POLL_JOB_ID = "bookmark_poll"


class PollingScheduler:
    """Run an async task once immediately, then at a fixed interval.

    A single job with ``max_instances=1`` means a slow run is never
    overlapped by the next one.
    """

    def __init__(
        self,
        task: Callable[[], Awaitable[object]],
        interval: timedelta,
        job_id: str = POLL_JOB_ID,
    ):
        self.task = task
        self.interval = interval
        self.job_id = job_id
        self._scheduler: Optional[AsyncIOScheduler] = None

    async def _run_task(self) -> None:
        """Job wrapper: errors are logged, never raised into APScheduler."""
        try:
            await self.task()
        except Exception as e:
            logger.error(f"Polling job failed: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler; the first run happens right away.

        Must be called from within a running event loop.
        """
        if self.is_running:
            logger.warning("Scheduler already running")
            return

        scheduler = AsyncIOScheduler(timezone="UTC")
        scheduler.add_job(
            self._run_task,
            trigger=IntervalTrigger(seconds=self.interval.total_seconds(), timezone="UTC"),
            id=self.job_id,
            name="Poll Twitter bookmarks",
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(f"Scheduler started, running task every {self.interval}")

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running job."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self._scheduler = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def next_run_time(self) -> Optional[datetime]:
        if not self.is_running:
            return None
        job = self._scheduler.get_job(self.job_id)
        return job.next_run_time if job else None

    def run_now(self) -> bool:
        """Move the next run to now.

        Returns:
            True if a run was scheduled, False if the scheduler is not running
        """
        if not self.is_running:
            return False
        job = self._scheduler.get_job(self.job_id)
        if job is None:
            return False
        job.modify(next_run_time=datetime.now(timezone.utc))
        logger.info("Immediate bookmark check requested")
        return True
