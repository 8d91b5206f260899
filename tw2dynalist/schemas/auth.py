"""Authorization endpoint schemas."""

from typing import Optional

from pydantic import BaseModel


class AuthURLResponse(BaseModel):
    """OAuth authorization URL response."""

    authorization_url: str
    state: str


class TokenStatusResponse(BaseModel):
    """Token/connection status response."""

    authenticated: bool
    user_id: Optional[str] = None
    expires_at: Optional[str] = None
    is_expired: bool = False
    authorization_pending: bool = False


class SyncResponse(BaseModel):
    """Manual sync trigger response."""

    message: str
    next_run_time: Optional[str] = None


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
