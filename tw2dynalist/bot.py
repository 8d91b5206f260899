"""Wiring of the bot's services from settings."""

from datetime import timedelta
import logging

from tw2dynalist.config import Settings
from tw2dynalist.services.cache import CacheError, ProcessedCache
from tw2dynalist.services.dynalist import DynalistClient
from tw2dynalist.services.metrics import BotMetrics, BotStatus
from tw2dynalist.services.notifications import NtfyClient
from tw2dynalist.services.processor import BookmarkProcessor
from tw2dynalist.services.scheduler import PollingScheduler
from tw2dynalist.services.twitter import TwitterClient, TwitterOAuthService

logger = logging.getLogger(__name__)


class Bot:
    """Holds every service of a running bot instance."""

    def __init__(
        self,
        settings: Settings,
        oauth: TwitterOAuthService,
        twitter: TwitterClient,
        dynalist: DynalistClient,
        cache: ProcessedCache,
        notifier: NtfyClient,
    ):
        self.settings = settings
        self.oauth = oauth
        self.twitter = twitter
        self.dynalist = dynalist
        self.cache = cache
        self.notifier = notifier
        self.metrics = BotMetrics(settings.CHECK_INTERVAL)
        self.processor = BookmarkProcessor(
            oauth=oauth,
            twitter=twitter,
            dynalist=dynalist,
            cache=cache,
            metrics=self.metrics,
            notifier=notifier,
            remove_bookmarks=settings.REMOVE_BOOKMARKS,
            cleanup_processed=settings.CLEANUP_PROCESSED_BOOKMARKS,
            item_delay=settings.ITEM_DELAY_SECONDS,
            check_interval=settings.CHECK_INTERVAL,
            next_check_time=lambda: self.scheduler.next_run_time,
        )
        self.scheduler = PollingScheduler(
            self.processor.process_bookmarks,
            settings.CHECK_INTERVAL,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Bot":
        """Build all services and load persisted state.

        Raises:
            CacheError: If the cache file exists but cannot be loaded
            TwitterOAuthError: If the token file exists but cannot be loaded
        """
        cache = ProcessedCache.load(settings.CACHE_FILE_PATH)

        oauth = TwitterOAuthService(
            client_id=settings.TWITTER_CLIENT_ID,
            client_secret=settings.TWITTER_CLIENT_SECRET,
            redirect_uri=settings.TWITTER_REDIRECT_URL,
            token_file=settings.TOKEN_FILE_PATH,
            scopes=settings.scopes,
            state_ttl=timedelta(minutes=settings.AUTH_STATE_TTL_MINUTES),
        )
        logger.debug(f"OAuth2 redirect URL: {settings.TWITTER_REDIRECT_URL}")
        oauth.load_token()

        return cls(
            settings=settings,
            oauth=oauth,
            twitter=TwitterClient(oauth, settings.TW_USER),
            dynalist=DynalistClient(
                settings.DYNALIST_TOKEN,
                max_retries=settings.DYNALIST_MAX_RETRIES,
                retry_delay=settings.DYNALIST_RETRY_DELAY_SECONDS,
            ),
            cache=cache,
            notifier=NtfyClient(
                settings.NTFY_SERVER,
                settings.NTFY_TOPIC,
                username=settings.NTFY_USERNAME,
                password=settings.NTFY_PASSWORD,
            ),
        )

    def start(self) -> None:
        """Start polling. Must be called from within the running event loop."""
        logger.info("Starting application")
        self.scheduler.start()

    def stop(self) -> None:
        """Stop polling and flush the cache."""
        logger.info("Shutting down...")
        self.scheduler.stop()
        try:
            self.cache.save()
        except CacheError as e:
            logger.error(f"Error saving cache on shutdown: {e}")
        self.metrics.update_status(BotStatus.STOPPED)
        logger.info("Application stopped")

    def trigger_check(self) -> bool:
        """Request an immediate bookmark check."""
        scheduled = self.scheduler.run_now()
        if scheduled:
            self.metrics.set_next_check(self.scheduler.next_run_time)
        return scheduled
