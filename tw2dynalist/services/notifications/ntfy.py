"""Push notifications through an ntfy server."""

from dataclasses import dataclass
from typing import Optional
import logging

import httpx

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """Result of a notification send."""

    success: bool
    skipped: bool = False
    error: Optional[str] = None


class NtfyClient:
    """Publish messages to an ntfy topic.

    An empty server URL disables the client; sends are then skipped.
    """

    def __init__(
        self,
        server_url: str,
        topic: str,
        username: str = "",
        password: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.topic = topic
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.server_url and self.topic)

    async def send(self, message: str, title: str) -> NotificationResult:
        """Send a notification.

        Args:
            message: Notification body
            title: Notification title

        Returns:
            NotificationResult with success status or error
        """
        if not self.enabled:
            logger.debug("ntfy server URL is not set, skipping notification")
            return NotificationResult(success=False, skipped=True)

        url = f"{self.server_url}/{self.topic}"
        auth = None
        if self.username and self.password:
            auth = (self.username, self.password)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    url,
                    content=message.encode("utf-8"),
                    headers={"Title": title},
                    auth=auth,
                )
            except httpx.InvalidURL as e:
                logger.warning(f"Invalid ntfy server URL {url}: {e}")
                return NotificationResult(success=False, error=f"Invalid ntfy URL: {str(e)}")
            except httpx.RequestError as e:
                logger.warning(f"Failed to send ntfy notification: {e}")
                return NotificationResult(success=False, error=f"Network error: {str(e)}")

        if response.status_code != 200:
            error = f"ntfy error ({response.status_code}): {response.text}"
            logger.warning(f"Failed to send ntfy notification: {error}")
            return NotificationResult(success=False, error=error)

        logger.info(f"Sent ntfy notification to topic {self.topic}")
        return NotificationResult(success=True)
