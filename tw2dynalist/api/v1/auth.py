"""Twitter authorization API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from tw2dynalist.api.deps import get_bot
from tw2dynalist.bot import Bot
from tw2dynalist.schemas.auth import (
    AuthURLResponse,
    MessageResponse,
    TokenStatusResponse,
)
from tw2dynalist.services.twitter import TwitterOAuthError

router = APIRouter()


def _token_status(bot: Bot) -> TokenStatusResponse:
    token = bot.oauth.token
    if token is None:
        return TokenStatusResponse(
            authenticated=False,
            authorization_pending=bot.oauth.authorization_pending,
        )

    return TokenStatusResponse(
        authenticated=True,
        user_id=token.user_id,
        expires_at=token.expiry.isoformat() if token.expiry else None,
        is_expired=token.is_expired,
        authorization_pending=bot.oauth.authorization_pending,
    )


@router.get("/url", response_model=AuthURLResponse)
async def get_auth_url(bot: Bot = Depends(get_bot)) -> AuthURLResponse:
    """Get a fresh Twitter OAuth authorization URL.

    Visiting the URL and approving the app redirects to /callback,
    which stores the token.
    """
    url, state = bot.oauth.get_authorization_url()
    return AuthURLResponse(authorization_url=url, state=state)


@router.get("/status", response_model=TokenStatusResponse)
async def get_token_status(bot: Bot = Depends(get_bot)) -> TokenStatusResponse:
    """Check Twitter authentication status."""
    return _token_status(bot)


@router.post("/refresh", response_model=TokenStatusResponse)
async def refresh_token(bot: Bot = Depends(get_bot)) -> TokenStatusResponse:
    """Manually refresh the Twitter access token."""
    if not bot.oauth.has_token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No Twitter token found. Please authenticate first.",
        )

    try:
        await bot.oauth.refresh_token()
    except TwitterOAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Token refresh failed: {e.message}",
        )

    return _token_status(bot)


@router.post("/disconnect", response_model=MessageResponse)
async def disconnect_twitter(bot: Bot = Depends(get_bot)) -> MessageResponse:
    """Disconnect Twitter by deleting the stored token."""
    deleted = bot.oauth.revoke_token()

    if deleted:
        return MessageResponse(message="Twitter account disconnected successfully")
    else:
        return MessageResponse(message="No Twitter account was connected")
