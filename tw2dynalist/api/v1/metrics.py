"""Metrics and sync endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from tw2dynalist.api.deps import get_bot
from tw2dynalist.bot import Bot
from tw2dynalist.schemas.auth import SyncResponse
from tw2dynalist.schemas.metrics import MetricsSnapshot

router = APIRouter()


@router.get("/metrics", response_model=MetricsSnapshot)
async def get_metrics(bot: Bot = Depends(get_bot)) -> MetricsSnapshot:
    """Get bot status and counters."""
    return bot.metrics.snapshot(cache_size=len(bot.cache))


@router.post("/sync", response_model=SyncResponse)
async def trigger_sync(bot: Bot = Depends(get_bot)) -> SyncResponse:
    """Request an immediate bookmark check."""
    if not bot.trigger_check():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduler is not running",
        )

    next_run = bot.scheduler.next_run_time
    return SyncResponse(
        message="Bookmark check scheduled",
        next_run_time=next_run.isoformat() if next_run else None,
    )
