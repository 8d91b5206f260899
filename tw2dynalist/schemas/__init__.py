"""API response schemas."""

from tw2dynalist.schemas.auth import (
    AuthURLResponse,
    MessageResponse,
    SyncResponse,
    TokenStatusResponse,
)
from tw2dynalist.schemas.metrics import MetricsSnapshot

__all__ = [
    "AuthURLResponse",
    "MessageResponse",
    "SyncResponse",
    "TokenStatusResponse",
    "MetricsSnapshot",
]
