"""Dashboard and OAuth callback HTML routes."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from tw2dynalist.api.deps import get_bot
from tw2dynalist.bot import Bot
from tw2dynalist.services.twitter import TwitterOAuthError

logger = logging.getLogger(__name__)

router = dashboard_router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


def format_optional_time(value: Optional[datetime], default: str) -> str:
    if value is None:
        return default
    return value.strftime("%a, %d %b %Y %H:%M:%S %Z")


def format_uptime(seconds: int) -> str:
    return str(timedelta(seconds=seconds))


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(request: Request, bot: Bot = Depends(get_bot)) -> Response:
    """Status dashboard."""
    metrics = bot.metrics.snapshot(cache_size=len(bot.cache))
    token = bot.oauth.token

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "app_name": bot.settings.APP_NAME,
            "metrics": metrics,
            "uptime": format_uptime(metrics.uptime_seconds),
            "last_check": format_optional_time(metrics.last_check_time, "Never"),
            "next_check": format_optional_time(metrics.next_check_time, "Not scheduled"),
            "token_expires": format_optional_time(
                token.expiry if token else None, "Unknown"
            ),
            "authenticated": token is not None,
            "authorization_url": bot.oauth.pending_authorization_url,
            "remove_bookmarks": bot.settings.REMOVE_BOOKMARKS,
        },
    )


@router.get("/callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(None, description="Authorization code from Twitter"),
    state: Optional[str] = Query(None, description="State parameter for CSRF verification"),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    bot: Bot = Depends(get_bot),
) -> Response:
    """Handle the Twitter OAuth redirect.

    Exchanges the authorization code for tokens and triggers an
    immediate bookmark check.
    """
    if error:
        message = f"OAuth Error: {error}"
        if error_description:
            message = f"{message} - {error_description}"
        logger.error(f"OAuth callback error: {message}")
        return _callback_response(request, False, message, status.HTTP_400_BAD_REQUEST)

    if not code:
        logger.error("Authorization code not found in callback")
        return _callback_response(
            request, False, "Authorization code not found", status.HTTP_400_BAD_REQUEST
        )

    try:
        await bot.oauth.exchange_code_for_token(code, state or "")
    except TwitterOAuthError as e:
        return _callback_response(request, False, e.message, status.HTTP_400_BAD_REQUEST)

    bot.trigger_check()
    return _callback_response(
        request, True, "You can close this window and return to your application."
    )


def _callback_response(
    request: Request,
    success: bool,
    message: str,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    return templates.TemplateResponse(
        request,
        "callback.html",
        {"success": success, "message": message},
        status_code=status_code,
    )


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}
