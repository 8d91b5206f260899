"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import logging
import sys

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from tw2dynalist import __version__
from tw2dynalist.bot import Bot
from tw2dynalist.config import Settings, get_settings
from tw2dynalist.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    bot: Optional[Bot] = getattr(app.state, "bot", None)
    if bot is None:
        bot = Bot.from_settings(app.state.settings)
        app.state.bot = bot

    # Start background scheduler for bookmark polling
    bot.start()

    yield

    # Shutdown
    bot.stop()


def create_app(settings: Optional[Settings] = None, bot: Optional[Bot] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        bot: Prebuilt bot; built from settings on startup when omitted
    """
    if settings is None:
        settings = bot.settings if bot is not None else get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=__version__,
        description="Forward Twitter bookmarks to the Dynalist inbox",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )
    app.state.settings = settings
    app.state.bot = bot

    # Register API routers
    from tw2dynalist.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    # Register dashboard and OAuth callback routes
    from tw2dynalist.api.dashboard import dashboard_router

    app.include_router(dashboard_router)

    return app


def run() -> None:
    """Console entry point: serve the bot with uvicorn."""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.critical(f"failed to load configuration: {e}")
        sys.exit(1)

    level = setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting web server on http://{settings.HOST}:{settings.CALLBACK_PORT}")

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.CALLBACK_PORT,
        log_level=logging.getLevelName(level).lower(),
    )


if __name__ == "__main__":
    run()
