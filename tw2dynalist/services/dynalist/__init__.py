"""Dynalist integration services."""

from tw2dynalist.services.dynalist.client import (
    DynalistClient,
    DynalistError,
    DynalistRateLimitError,
    DynalistAuthError,
)

__all__ = [
    "DynalistClient",
    "DynalistError",
    "DynalistRateLimitError",
    "DynalistAuthError",
]
