"""Async HTTP client for the Twitter API v2 bookmarks endpoints."""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING
import logging

import httpx

from tw2dynalist.services.twitter.oauth import TwitterOAuthError, TwitterOAuthService

if TYPE_CHECKING:
    from tw2dynalist.services.cache import ProcessedCache

logger = logging.getLogger(__name__)

TWITTER_API_BASE = "https://api.twitter.com"
TWEET_URL_TEMPLATE = "https://twitter.com/{username}/status/{tweet_id}"

BOOKMARKS_MAX_RESULTS = 100


class TwitterAPIError(Exception):
    """Custom exception for Twitter API errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        response_body: Any = None,
    ):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Twitter API Error {status_code}: {message}")


@dataclass(frozen=True)
class Tweet:
    """A bookmarked tweet."""

    id: str
    text: str
    url: str


@dataclass
class CleanupResult:
    """Result of removing already processed bookmarks."""

    removed: int = 0
    failed: int = 0


class TwitterClient:
    """Async HTTP client for Twitter bookmarks.

    Features:
    - Bearer token from the OAuth service, refreshed once on 401
    - Rate limit (429) on listing degrades to an empty result
    - Idempotent bookmark removal
    """

    def __init__(
        self,
        oauth: TwitterOAuthService,
        username: str,
        base_url: str = TWITTER_API_BASE,
        timeout: float = 10.0,
        removal_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.oauth = oauth
        self.username = username.lstrip("@")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.removal_delay = removal_delay
        self._transport = transport

    def _access_token(self) -> str:
        token = self.oauth.token
        if token is None:
            raise TwitterOAuthError("No valid Twitter token. Please authenticate first.", 401)
        return token.access_token

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
    ) -> httpx.Response:
        """Make authenticated request to the Twitter API.

        Args:
            method: HTTP method (GET, DELETE, etc.)
            endpoint: API endpoint path (e.g., "/2/users/123/bookmarks")
            params: Query parameters

        Returns:
            Raw response; status handling is left to the caller

        Raises:
            ReauthorizationRequired: If a 401 could not be fixed by refreshing
            TwitterAPIError: If the request could not be sent
        """
        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {self._access_token()}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, url, headers=headers, params=params)

                # Handle 401 - token might be expired, try refresh
                if response.status_code == 401:
                    logger.warning("Received 401 Unauthorized, attempting to refresh token")
                    token = await self.oauth.refresh_or_invalidate()
                    headers["Authorization"] = f"Bearer {token.access_token}"
                    logger.info(f"Retrying {method} {endpoint} after token refresh")
                    response = await client.request(method, url, headers=headers, params=params)
            except httpx.HTTPError as e:
                raise TwitterAPIError(0, f"Request to {endpoint} failed: {e}") from e

        return response

    @staticmethod
    def _error_from_response(response: httpx.Response) -> TwitterAPIError:
        response_body = None
        message = response.text
        try:
            response_body = response.json()
        except ValueError:
            pass
        if isinstance(response_body, dict):
            message = response_body.get("detail") or response_body.get("title") or message
        return TwitterAPIError(response.status_code, message, response_body)

    @staticmethod
    def _json_body(response: httpx.Response, endpoint: str) -> dict:
        """Decode a successful response body that must be a JSON object.

        Raises:
            TwitterAPIError: If the body is not a JSON object
        """
        try:
            body = response.json()
        except ValueError as e:
            raise TwitterAPIError(
                response.status_code,
                f"Invalid JSON response from {endpoint}",
                response.text,
            ) from e
        if not isinstance(body, dict):
            raise TwitterAPIError(
                response.status_code,
                f"Unexpected response from {endpoint}: expected an object",
                body,
            )
        return body

    async def resolve_user_id(self) -> str:
        """Get the numeric user ID the bookmarks API needs.

        Uses the ID stored with the token when available, otherwise looks
        up the configured username and stores the result.

        Returns:
            Twitter user ID

        Raises:
            TwitterAPIError: If the lookup fails
        """
        token = self.oauth.token
        if token is not None and token.user_id and token.user_id != "me":
            return token.user_id

        logger.info("Need to lookup actual user ID for bookmarks API")
        response = await self._make_request(
            "GET",
            f"/2/users/by/username/{self.username}",
            params={"user.fields": "id"},
        )
        if not response.is_success:
            error = self._error_from_response(response)
            logger.error(f"Cannot get user ID for bookmarks API: {error}")
            raise error

        body = self._json_body(response, "user lookup")
        data = body.get("data")
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise TwitterAPIError(
                response.status_code,
                "Failed to get user information for bookmarks API",
                body,
            )

        user_id = str(user_id)
        logger.info(f"Successfully retrieved user ID: {user_id}")
        self.oauth.set_user_id(user_id)
        return user_id

    async def list_bookmarks(self) -> list[Tweet]:
        """Retrieve bookmarked tweets for the authenticated user.

        Returns:
            Bookmarked tweets; empty when rate limited

        Raises:
            ReauthorizationRequired: If the token was rejected and could not be refreshed
            TwitterAPIError: If the API returns any other error
        """
        user_id = await self.resolve_user_id()
        logger.info(f"Fetching bookmarks for user ID: {user_id}")

        response = await self._make_request(
            "GET",
            f"/2/users/{user_id}/bookmarks",
            params={
                "max_results": BOOKMARKS_MAX_RESULTS,
                "tweet.fields": "id,text,author_id,created_at",
                "user.fields": "id,name,username",
                "expansions": "author_id",
            },
        )

        if response.status_code == 429:
            error = self._error_from_response(response)
            logger.warning(
                f"Twitter API rate limit hit on bookmarks endpoint. Original message: {error.message}"
            )
            return []

        if not response.is_success:
            error = self._error_from_response(response)
            logger.error(f"Failed to get bookmarks: {error}")
            raise error

        body = self._json_body(response, "bookmarks endpoint")
        tweets_data = body.get("data") or []
        if not isinstance(tweets_data, list) or not all(
            isinstance(tweet, dict) and "id" in tweet for tweet in tweets_data
        ):
            raise TwitterAPIError(
                response.status_code, "Unexpected bookmarks response shape", body
            )
        if not tweets_data:
            logger.info("Found 0 bookmarked tweets")
            return []

        logger.info(f"Found {len(tweets_data)} bookmarks")

        includes = body.get("includes")
        users = includes.get("users") if isinstance(includes, dict) else None
        author_map = {
            user["id"]: user["username"]
            for user in users or []
            if isinstance(user, dict) and "id" in user and "username" in user
        }

        tweets = []
        for tweet in tweets_data:
            username = author_map.get(tweet.get("author_id"), "user")
            tweets.append(
                Tweet(
                    id=str(tweet["id"]),
                    text=tweet.get("text", ""),
                    url=TWEET_URL_TEMPLATE.format(username=username, tweet_id=tweet["id"]),
                )
            )
        return tweets

    async def remove_bookmark(self, tweet_id: str) -> None:
        """Remove a tweet from bookmarks.

        A bookmark that no longer exists counts as removed.

        Args:
            tweet_id: ID of the bookmarked tweet

        Raises:
            ReauthorizationRequired: If the token was rejected and could not be refreshed
            TwitterAPIError: If the API refuses the removal
        """
        logger.debug(f"Attempting to remove bookmark for tweet ID: {tweet_id}")
        user_id = await self.resolve_user_id()

        response = await self._make_request(
            "DELETE", f"/2/users/{user_id}/bookmarks/{tweet_id}"
        )

        if response.status_code in (200, 204):
            logger.debug(f"Successfully removed bookmark for tweet {tweet_id}")
            return
        if response.status_code == 404:
            logger.debug(f"Bookmark for tweet {tweet_id} was not found")
            return
        if response.status_code == 403:
            raise TwitterAPIError(
                403,
                "insufficient permissions for bookmark removal - re-authorization required",
            )

        raise TwitterAPIError(
            response.status_code,
            f"failed to remove bookmark (HTTP {response.status_code})",
        )

    async def cleanup_processed_bookmarks(self, cache: "ProcessedCache") -> CleanupResult:
        """Remove every current bookmark that was already processed.

        Args:
            cache: Cache of processed tweet IDs

        Returns:
            Counts of removed and failed bookmarks
        """
        logger.info("Starting cleanup of processed bookmarks")
        tweets = await self.list_bookmarks()
        result = CleanupResult()

        if not tweets:
            logger.info("No bookmarks found for cleanup")
            return result

        for tweet in tweets:
            if not cache.is_processed(tweet.id):
                continue
            try:
                await self.remove_bookmark(tweet.id)
            except TwitterAPIError as e:
                logger.warning(f"Failed to remove processed bookmark {tweet.id}: {e}")
                result.failed += 1
                continue
            result.removed += 1
            await asyncio.sleep(self.removal_delay)

        logger.info(
            f"Cleanup complete. Removed {result.removed} processed bookmarks, failed: {result.failed}"
        )
        return result
