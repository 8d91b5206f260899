"""Twitter OAuth 2.0 PKCE flow implementation."""

import base64
import hashlib
import os
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlencode
import logging

import httpx
from pydantic import ValidationError

from tw2dynalist.models.twitter_token import TwitterToken

logger = logging.getLogger(__name__)

# Twitter OAuth endpoints
TWITTER_AUTH_URL = "https://twitter.com/i/oauth2/authorize"
TWITTER_TOKEN_URL = "https://api.twitter.com/2/oauth2/token"  # nosec B105

DEFAULT_SCOPES = [
    "tweet.read",
    "users.read",
    "bookmark.read",
    "bookmark.write",
    "offline.access",
]


class TwitterOAuthError(Exception):
    """Custom exception for Twitter OAuth errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ReauthorizationRequired(TwitterOAuthError):
    """Raised once a failed refresh has invalidated the stored token."""


class TwitterOAuthService:
    """Handle Twitter OAuth 2.0 PKCE flow and token persistence.

    The token (and the resolved account ID) live in a single JSON file.
    A failed refresh deletes that file, so the next run starts a new
    authorization flow.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        token_file: Union[str, Path],
        scopes: Optional[list[str]] = None,
        state_ttl: timedelta = timedelta(minutes=30),
        auth_url: str = TWITTER_AUTH_URL,
        token_url: str = TWITTER_TOKEN_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.token_file = Path(token_file)
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self.state_ttl = state_ttl
        self.auth_url = auth_url
        self.token_url = token_url
        self._transport = transport

        self._token: Optional[TwitterToken] = None
        self.refresh_count = 0

        # Pending authorization states: state -> verifier and creation time
        self._pending_states: dict[str, dict] = {}
        self._latest_authorization_url: Optional[str] = None

    # Token persistence

    @property
    def token(self) -> Optional[TwitterToken]:
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def load_token(self) -> Optional[TwitterToken]:
        """Load the token file if it exists.

        Returns:
            Loaded token or None if no token file exists

        Raises:
            TwitterOAuthError: If the token file cannot be read or parsed
        """
        if not self.token_file.exists():
            logger.info(f"No token file found at {self.token_file}")
            self._token = None
            return None

        try:
            raw = self.token_file.read_text(encoding="utf-8")
            token = TwitterToken.model_validate_json(raw)
        except OSError as e:
            raise TwitterOAuthError(f"Failed to read token file: {e}") from e
        except ValidationError as e:
            raise TwitterOAuthError(f"Failed to parse token file: {e}") from e

        self._token = token
        logger.debug(f"Loaded token with userID: {token.user_id or ''}")
        return token

    def save_token(self, token: TwitterToken) -> None:
        """Write the token to the token file with owner-only permissions."""
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        data = token.model_dump_json(indent=2)

        fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)

        self._token = token

    def _persist(self, token: TwitterToken) -> None:
        # A token that cannot be written is still usable for this process
        try:
            self.save_token(token)
        except OSError as e:
            logger.warning(f"Failed to save token: {e}")
            self._token = token

    def set_user_id(self, user_id: str) -> None:
        """Store the resolved account ID alongside the token."""
        if self._token is None:
            raise TwitterOAuthError("No token to attach user ID to")
        self._persist(self._token.model_copy(update={"user_id": user_id}))

    def invalidate(self) -> None:
        """Forget the token in memory and on disk."""
        self._token = None
        try:
            self.token_file.unlink()
            logger.info("Removed token file, please re-authenticate")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove token file: {e}")

    def revoke_token(self) -> bool:
        """Delete the stored token.

        Returns:
            True if a token was deleted, False if none existed
        """
        existed = self._token is not None or self.token_file.exists()
        self.invalidate()
        if existed:
            logger.info("Revoked Twitter token")
        return existed

    # Authorization flow

    def generate_pkce_pair(self) -> tuple[str, str]:
        """Generate PKCE code_verifier and code_challenge.

        Returns:
            Tuple of (code_verifier, code_challenge)
        """
        # code_verifier: 32 random bytes, base64url encoded (43 chars)
        code_verifier = secrets.token_urlsafe(32)

        # code_challenge: SHA256 hash of verifier, base64url encoded (no padding)
        digest = hashlib.sha256(code_verifier.encode()).digest()
        code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode()

        return code_verifier, code_challenge

    def get_authorization_url(self) -> tuple[str, str]:
        """Generate Twitter OAuth authorization URL.

        Returns:
            Tuple of (authorization_url, state)
        """
        self._cleanup_expired_states()

        state = secrets.token_urlsafe(32)
        code_verifier, code_challenge = self.generate_pkce_pair()

        self._pending_states[state] = {
            "code_verifier": code_verifier,
            "created_at": datetime.now(timezone.utc),
        }

        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }

        url = f"{self.auth_url}?{urlencode(params)}"
        self._latest_authorization_url = url
        logger.info(f"Generated OAuth authorization URL with state: {state[:8]}...")
        return url, state

    def _cleanup_expired_states(self) -> None:
        """Remove pending states older than the state TTL."""
        now = datetime.now(timezone.utc)
        expired = [
            state
            for state, data in self._pending_states.items()
            if now - data["created_at"] > self.state_ttl
        ]
        for state in expired:
            del self._pending_states[state]
        if not self._pending_states:
            self._latest_authorization_url = None

    @property
    def authorization_pending(self) -> bool:
        """True while an issued authorization URL can still be completed."""
        self._cleanup_expired_states()
        return bool(self._pending_states)

    @property
    def pending_authorization_url(self) -> Optional[str]:
        """Most recently issued authorization URL, if still valid."""
        self._cleanup_expired_states()
        return self._latest_authorization_url

    async def _post_token_endpoint(self, data: dict, action: str) -> dict:
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.token_url,
                    data=data,
                    auth=(self.client_id, self.client_secret),
                )
            except httpx.HTTPError as e:
                raise TwitterOAuthError(f"{action} failed: {e}") from e

            if not response.is_success:
                error_msg = f"{action} failed: {response.status_code} - {response.text}"
                logger.error(error_msg)
                raise TwitterOAuthError(error_msg, response.status_code)

            try:
                token_data = response.json()
            except ValueError as e:
                raise TwitterOAuthError(f"{action} failed: invalid JSON response") from e

        if "access_token" not in token_data:
            raise TwitterOAuthError(f"{action} failed: no access_token in response")
        return token_data

    async def exchange_code_for_token(self, code: str, state: str) -> TwitterToken:
        """Exchange authorization code for access token.

        Args:
            code: Authorization code from the Twitter callback
            state: State parameter for CSRF verification

        Returns:
            Stored TwitterToken

        Raises:
            TwitterOAuthError: If state is invalid or token exchange fails
        """
        self._cleanup_expired_states()
        if state not in self._pending_states:
            raise TwitterOAuthError("Invalid or expired state parameter")

        state_data = self._pending_states.pop(state)
        code_verifier = state_data["code_verifier"]

        logger.info("Exchanging authorization code for access token")

        token_data = await self._post_token_endpoint(
            {
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "code": code,
                "code_verifier": code_verifier,
            },
            "Token exchange",
        )

        token = TwitterToken.from_response(token_data)
        self._persist(token)

        # Single account: any other outstanding URL is now stale
        self._pending_states.clear()
        self._latest_authorization_url = None

        logger.info("Successfully stored Twitter access token")
        return token

    async def refresh_token(self) -> TwitterToken:
        """Refresh the access token.

        Returns:
            Updated TwitterToken

        Raises:
            TwitterOAuthError: If no refresh token is stored or refresh fails
        """
        current = self._token
        if current is None or not current.refresh_token:
            raise TwitterOAuthError("No refresh token available")

        logger.info("Attempting to refresh token")

        token_data = await self._post_token_endpoint(
            {
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "refresh_token": current.refresh_token,
            },
            "Token refresh",
        )

        token = TwitterToken.from_response(
            token_data,
            user_id=current.user_id,
            previous_refresh_token=current.refresh_token,
        )
        self._persist(token)
        self.refresh_count += 1

        logger.info("Token refreshed successfully")
        return token

    async def refresh_or_invalidate(self) -> TwitterToken:
        """Refresh the token, dropping it entirely if refresh fails.

        Raises:
            ReauthorizationRequired: If the refresh failed
        """
        try:
            return await self.refresh_token()
        except TwitterOAuthError as e:
            logger.error(f"Failed to refresh token: {e}")
            self.invalidate()
            raise ReauthorizationRequired(
                f"Failed to refresh token, re-authentication required: {e.message}",
                e.status_code,
            ) from e
