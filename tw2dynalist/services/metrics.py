"""In-memory bot status and counters."""

import enum
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from tw2dynalist.schemas.metrics import MetricsSnapshot


class BotStatus(str, enum.Enum):
    """Bot run status shown on the dashboard."""

    STARTING = "Starting"
    WAITING_FOR_AUTHORIZATION = "Waiting for authorization"
    PROCESSING = "Processing"
    RUNNING = "Running"
    ERROR = "Error"
    STOPPED = "Stopped"


class BotMetrics:
    """Thread-safe holder for the bot's status and totals."""

    def __init__(self, check_interval: timedelta):
        self._lock = threading.Lock()
        self.check_interval = check_interval
        self.start_time = datetime.now(timezone.utc)
        self.status = BotStatus.STARTING
        self.last_check_time: Optional[datetime] = None
        self.next_check_time: Optional[datetime] = None
        self.total_bookmarks_processed = 0
        self.total_dynalist_saves = 0
        self.total_bookmarks_skipped = 0
        self.total_bookmarks_failed = 0
        self.total_bookmarks_removed = 0
        self.last_error: Optional[str] = None
        self.last_error_time: Optional[datetime] = None
        self.token_expires_at: Optional[datetime] = None
        self.token_refresh_count = 0

    def update_status(self, status: BotStatus) -> None:
        with self._lock:
            self.status = status

    def record_check(
        self,
        processed: int,
        skipped: int = 0,
        failed: int = 0,
        removed: int = 0,
        next_check: Optional[datetime] = None,
    ) -> None:
        """Add one run's counts to the totals."""
        with self._lock:
            now = datetime.now(timezone.utc)
            self.last_check_time = now
            self.next_check_time = next_check or now + self.check_interval
            self.total_bookmarks_processed += processed
            self.total_dynalist_saves += processed
            self.total_bookmarks_skipped += skipped
            self.total_bookmarks_failed += failed
            self.total_bookmarks_removed += removed

    def set_next_check(self, next_check: Optional[datetime]) -> None:
        with self._lock:
            self.next_check_time = next_check

    def record_removed(self, removed: int) -> None:
        with self._lock:
            self.total_bookmarks_removed += removed

    def record_error(self, error: str) -> None:
        with self._lock:
            self.last_error = error
            self.last_error_time = datetime.now(timezone.utc)

    def record_token(self, expires_at: Optional[datetime], refresh_count: int) -> None:
        with self._lock:
            self.token_expires_at = expires_at
            self.token_refresh_count = refresh_count

    def snapshot(self, cache_size: int = 0) -> MetricsSnapshot:
        """Get a consistent copy of the current metrics."""
        with self._lock:
            now = datetime.now(timezone.utc)
            return MetricsSnapshot(
                status=self.status.value,
                start_time=self.start_time,
                uptime_seconds=int((now - self.start_time).total_seconds()),
                last_check_time=self.last_check_time,
                next_check_time=self.next_check_time,
                check_interval_seconds=int(self.check_interval.total_seconds()),
                total_bookmarks_processed=self.total_bookmarks_processed,
                total_dynalist_saves=self.total_dynalist_saves,
                total_bookmarks_skipped=self.total_bookmarks_skipped,
                total_bookmarks_failed=self.total_bookmarks_failed,
                total_bookmarks_removed=self.total_bookmarks_removed,
                last_error=self.last_error,
                last_error_time=self.last_error_time,
                token_expires_at=self.token_expires_at,
                token_refresh_count=self.token_refresh_count,
                cache_size=cache_size,
            )
