"""Metrics schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MetricsSnapshot(BaseModel):
    """Bot status and counters served by the dashboard and /api/metrics."""

    status: str
    start_time: datetime
    uptime_seconds: int
    last_check_time: Optional[datetime] = None
    next_check_time: Optional[datetime] = None
    check_interval_seconds: int
    total_bookmarks_processed: int = 0
    total_dynalist_saves: int = 0
    total_bookmarks_skipped: int = 0
    total_bookmarks_failed: int = 0
    total_bookmarks_removed: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    token_expires_at: Optional[datetime] = None
    token_refresh_count: int = 0
    cache_size: int = 0
