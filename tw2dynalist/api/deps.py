"""Shared API dependencies."""

from fastapi import HTTPException, Request, status

from tw2dynalist.bot import Bot


def get_bot(request: Request) -> Bot:
    """Get the bot instance attached to the application."""
    bot = getattr(request.app.state, "bot", None)
    if bot is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Bot is not running",
        )
    return bot
