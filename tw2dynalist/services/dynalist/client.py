"""Async HTTP client for the Dynalist inbox API."""

import asyncio
from typing import Optional
import logging

import httpx

logger = logging.getLogger(__name__)

DYNALIST_INBOX_URL = "https://dynalist.io/api/v1/inbox/add"

# Dynalist answers HTTP 200 and reports the outcome in "_code"
CODE_OK = "Ok"
CODE_TOO_MANY_REQUESTS = "TooManyRequests"
CODE_INVALID_TOKEN = "InvalidToken"
CODE_UNAUTHORIZED = "Unauthorized"


class DynalistError(Exception):
    """Exception raised when Dynalist rejects a request."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class DynalistRateLimitError(DynalistError):
    """Dynalist answered TooManyRequests."""


class DynalistAuthError(DynalistError):
    """Dynalist rejected the API token."""


def error_from_response(result: dict) -> DynalistError:
    """Classify a non-Ok Dynalist response body."""
    code = result.get("_code")
    msg = result.get("_msg", "")

    if code == CODE_TOO_MANY_REQUESTS:
        return DynalistRateLimitError(f"dynalist rate limit: {msg}", code)
    if code == CODE_INVALID_TOKEN:
        return DynalistAuthError(f"dynalist invalid token: {msg}", code)
    if code == CODE_UNAUTHORIZED:
        return DynalistAuthError(f"dynalist unauthorized: {msg}", code)
    return DynalistError(f"dynalist API error [{code}]: {msg}", code)


class DynalistClient:
    """Async client for adding items to the Dynalist inbox.

    Rate limited requests are retried with linear backoff; every other
    failure is raised immediately.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DYNALIST_INBOX_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._transport = transport

    async def add_to_inbox(self, content: str, note: str = "") -> dict:
        """Add an item to the Dynalist inbox.

        Args:
            content: Item text
            note: Optional item note

        Returns:
            Parsed Dynalist response

        Raises:
            DynalistRateLimitError: If still rate limited after all attempts
            DynalistAuthError: If the token is rejected
            DynalistError: For any other failure
        """
        attempt = 1
        while True:
            try:
                return await self._post_inbox(content, note)
            except DynalistRateLimitError as e:
                if attempt >= self.max_retries:
                    logger.error(
                        f"Dynalist still rate limited after {self.max_retries} attempts: {e}"
                    )
                    raise
                delay = attempt * self.retry_delay
                logger.warning(
                    f"Dynalist rate limit hit, retrying in {delay:g} seconds "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _post_inbox(self, content: str, note: str) -> dict:
        payload = {"token": self.token, "content": content}
        if note:
            payload["note"] = note

        logger.debug(f"Sending request to Dynalist API at {self.base_url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.base_url, json=payload)
            except httpx.HTTPError as e:
                raise DynalistError(f"failed to send request: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise DynalistError(
                f"failed to parse response (HTTP {response.status_code}): {e}"
            ) from e

        if not isinstance(result, dict):
            raise DynalistError(f"unexpected response (HTTP {response.status_code})")

        logger.debug(f"Dynalist API response code: {result.get('_code')}")

        if result.get("_code") != CODE_OK:
            error = error_from_response(result)
            if isinstance(error, DynalistAuthError):
                logger.error(f"Dynalist token rejected: {error.message}")
            elif not isinstance(error, DynalistRateLimitError):
                logger.error(error.message)
            raise error

        logger.debug("Successfully added item to Dynalist inbox")
        return result
