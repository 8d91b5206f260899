"""Twitter integration services.

This package provides:
- OAuth 2.0 PKCE authentication flow with file-backed tokens
- Bookmarks API client
"""

from tw2dynalist.services.twitter.oauth import (
    TwitterOAuthService,
    TwitterOAuthError,
    ReauthorizationRequired,
)
from tw2dynalist.services.twitter.client import (
    TwitterClient,
    TwitterAPIError,
    Tweet,
    CleanupResult,
)

__all__ = [
    # OAuth
    "TwitterOAuthService",
    "TwitterOAuthError",
    "ReauthorizationRequired",
    # Client
    "TwitterClient",
    "TwitterAPIError",
    "Tweet",
    "CleanupResult",
]
