"""Twitter OAuth token storage model."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel


class TwitterToken(BaseModel):
    """Twitter OAuth 2.0 token persisted to the token file."""

    access_token: str
    token_type: str = "bearer"
    refresh_token: str = ""
    expiry: Optional[datetime] = None
    user_id: Optional[str] = None

    @classmethod
    def from_response(
        cls,
        token_data: dict,
        user_id: Optional[str] = None,
        previous_refresh_token: str = "",
    ) -> "TwitterToken":
        """Build a token from a token endpoint response body."""
        expiry = None
        expires_in = token_data.get("expires_in")
        if expires_in is not None:
            expiry = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))

        return cls(
            access_token=token_data["access_token"],
            token_type=token_data.get("token_type", "bearer"),
            refresh_token=token_data.get("refresh_token") or previous_refresh_token,
            expiry=expiry,
            user_id=user_id,
        )

    @property
    def is_expired(self) -> bool:
        """Check if the token is expired."""
        if self.expiry is None:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) >= expiry
