"""Bookmark processing: the job run by the polling scheduler."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
import logging

from tw2dynalist.services.cache import CacheError, ProcessedCache
from tw2dynalist.services.dynalist import DynalistAuthError, DynalistClient, DynalistError
from tw2dynalist.services.metrics import BotMetrics, BotStatus
from tw2dynalist.services.notifications import NtfyClient
from tw2dynalist.services.twitter import (
    ReauthorizationRequired,
    Tweet,
    TwitterAPIError,
    TwitterClient,
    TwitterOAuthError,
    TwitterOAuthService,
)

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "tw2dynalist"


@dataclass
class ProcessResult:
    """Counts from one processing run."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    removed: int = 0
    authorized: bool = True


def format_inbox_item(tweet: Tweet) -> tuple[str, str]:
    """Build the Dynalist (content, note) pair for a tweet."""
    return f"Tweet: {tweet.text}", f"URL: {tweet.url}"


class BookmarkProcessor:
    """Forward new Twitter bookmarks to the Dynalist inbox."""

    def __init__(
        self,
        oauth: TwitterOAuthService,
        twitter: TwitterClient,
        dynalist: DynalistClient,
        cache: ProcessedCache,
        metrics: BotMetrics,
        notifier: Optional[NtfyClient] = None,
        remove_bookmarks: bool = False,
        cleanup_processed: bool = False,
        item_delay: float = 0.2,
        check_interval: timedelta = timedelta(hours=1),
        next_check_time: Optional[Callable[[], Optional[datetime]]] = None,
    ):
        self.oauth = oauth
        self.twitter = twitter
        self.dynalist = dynalist
        self.cache = cache
        self.metrics = metrics
        self.notifier = notifier
        self.remove_bookmarks = remove_bookmarks
        self.item_delay = item_delay
        self.check_interval = check_interval
        self.next_check_time = next_check_time
        self._cleanup_pending = cleanup_processed

    async def _notify(self, message: str, title: str = NOTIFICATION_TITLE) -> None:
        if self.notifier is None:
            return
        await self.notifier.send(message, title)

    def _sync_token_metrics(self) -> None:
        token = self.oauth.token
        self.metrics.record_token(
            token.expiry if token else None,
            self.oauth.refresh_count,
        )

    async def request_authorization(self) -> Optional[str]:
        """Issue an authorization URL unless one is still pending.

        Returns:
            The authorization URL the user should visit
        """
        if self.oauth.authorization_pending:
            return self.oauth.pending_authorization_url

        url, _ = self.oauth.get_authorization_url()
        logger.info("Please visit the following URL to authorize this application:")
        logger.info(url)
        await self._notify(
            f"Authorization required. Visit: {url}",
            f"{NOTIFICATION_TITLE}: authorization required",
        )
        return url

    async def _handle_reauthorization(self, error: ReauthorizationRequired) -> None:
        logger.error(str(error))
        self.metrics.record_error(str(error))
        self.metrics.update_status(BotStatus.WAITING_FOR_AUTHORIZATION)
        self._sync_token_metrics()
        await self._notify(
            "Twitter token refresh failed, re-authorization required.",
            f"{NOTIFICATION_TITLE}: re-authorization required",
        )
        await self.request_authorization()

    async def _run_cleanup(self) -> None:
        logger.info("Cleanup mode enabled - removing already processed bookmarks")
        cleanup = await self.twitter.cleanup_processed_bookmarks(self.cache)
        self._cleanup_pending = False
        self.metrics.record_removed(cleanup.removed)
        if cleanup.failed:
            error = f"cleanup completed with {cleanup.failed} failures"
            logger.error(f"Cleanup failed: {error}")
            self.metrics.record_error(error)
        else:
            logger.info("Cleanup completed successfully")

    async def process_bookmarks(self) -> ProcessResult:
        """Fetch bookmarks and forward the ones not seen before.

        Never raises for integration errors; they are logged and recorded
        in the metrics.

        Returns:
            Counts for this run
        """
        result = ProcessResult()

        if not self.oauth.has_token:
            self.metrics.update_status(BotStatus.WAITING_FOR_AUTHORIZATION)
            await self.request_authorization()
            result.authorized = False
            return result

        logger.info("Starting to process bookmarks")
        self.metrics.update_status(BotStatus.PROCESSING)

        try:
            if self._cleanup_pending:
                await self._run_cleanup()
            tweets = await self.twitter.list_bookmarks()
        except ReauthorizationRequired as e:
            await self._handle_reauthorization(e)
            result.authorized = False
            return result
        except (TwitterAPIError, TwitterOAuthError) as e:
            logger.error(f"failed to get bookmarks: {e}")
            self.metrics.record_error(str(e))
            self.metrics.update_status(BotStatus.ERROR)
            self._sync_token_metrics()
            return result

        self._sync_token_metrics()
        logger.info(f"Found {len(tweets)} bookmarked tweets")

        status = BotStatus.RUNNING
        reauthorization: Optional[ReauthorizationRequired] = None

        for tweet in tweets:
            if self.cache.is_processed(tweet.id):
                logger.debug(f"Tweet {tweet.id} already processed, skipping")
                result.skipped += 1
                continue

            logger.info(f"Processing tweet: {tweet.id}")
            logger.debug(f"Tweet URL: {tweet.url}")
            content, note = format_inbox_item(tweet)

            try:
                await self.dynalist.add_to_inbox(content, note)
            except DynalistAuthError as e:
                # Every remaining item would be rejected the same way
                logger.error(f"Dynalist rejected the token, stopping this run: {e}")
                result.failed += 1
                self.metrics.record_error(str(e))
                status = BotStatus.ERROR
                await self._notify(
                    f"Dynalist rejected the API token: {e.message}",
                    f"{NOTIFICATION_TITLE}: Dynalist token invalid",
                )
                break
            except DynalistError as e:
                logger.error(f"Error adding tweet {tweet.id} to Dynalist: {e}")
                result.failed += 1
                self.metrics.record_error(str(e))
                continue

            self.cache.mark_processed(tweet.id)
            result.processed += 1
            logger.info(f"Successfully added tweet {tweet.id} to Dynalist")

            if self.remove_bookmarks and reauthorization is None:
                try:
                    await self.twitter.remove_bookmark(tweet.id)
                except ReauthorizationRequired as e:
                    logger.warning(f"Failed to remove bookmark for tweet {tweet.id}: {e}")
                    reauthorization = e
                except (TwitterAPIError, TwitterOAuthError) as e:
                    logger.warning(f"Failed to remove bookmark for tweet {tweet.id}: {e}")
                else:
                    result.removed += 1
                    logger.info(f"Removed bookmark for tweet {tweet.id}")

            await asyncio.sleep(self.item_delay)

        try:
            self.cache.save()
        except CacheError as e:
            logger.error(f"Error saving cache: {e}")
            self.metrics.record_error(str(e))

        self.metrics.record_check(
            processed=result.processed,
            skipped=result.skipped,
            failed=result.failed,
            removed=result.removed,
            next_check=self.next_check_time() if self.next_check_time else None,
        )

        if reauthorization is not None:
            await self._handle_reauthorization(reauthorization)
            result.authorized = False
        else:
            self.metrics.update_status(status)

        logger.info(
            f"Bookmark processing complete. Processed: {result.processed}, "
            f"Skipped: {result.skipped}, Failed: {result.failed}"
        )
        return result
