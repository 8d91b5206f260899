"""Notification services."""

from tw2dynalist.services.notifications.ntfy import (
    NtfyClient,
    NotificationResult,
)

__all__ = [
    "NtfyClient",
    "NotificationResult",
]
