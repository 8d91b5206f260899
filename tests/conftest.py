"""Shared fixtures for the tw2dynalist test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import httpx
import pytest

from tw2dynalist.config import Settings
from tw2dynalist.models.twitter_token import TwitterToken
from tw2dynalist.services.twitter.oauth import TwitterOAuthService

REQUIRED_ENV = {
    "DYNALIST_TOKEN": "test_dynalist_token",
    "TWITTER_CLIENT_ID": "test_twitter_client_id",
    "TWITTER_CLIENT_SECRET": "test_twitter_client_secret",
    "TWITTER_REDIRECT_URL": "http://localhost:8080/callback",
    "TW_USER": "test_user",
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for Settings that never reads the process environment's .env."""

    def _create(**overrides) -> Settings:
        values = {
            **REQUIRED_ENV,
            "CACHE_FILE_PATH": str(tmp_path / "cache.json"),
            "TOKEN_FILE_PATH": str(tmp_path / "token.json"),
            "ITEM_DELAY_SECONDS": 0.0,
            "DYNALIST_RETRY_DELAY_SECONDS": 0.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _create


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    return tmp_path / "token.json"


@pytest.fixture
def stored_token() -> TwitterToken:
    return TwitterToken(
        access_token="access-1",
        refresh_token="refresh-1",
        expiry=datetime.now(timezone.utc) + timedelta(hours=2),
        user_id="42",
    )


@pytest.fixture
def make_oauth(token_file: Path) -> Callable[..., TwitterOAuthService]:
    """Factory for an OAuth service bound to a temp token file."""

    def _create(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        token: TwitterToken | None = None,
        **kwargs,
    ) -> TwitterOAuthService:
        transport = RecordingTransport(handler) if handler else None
        service = TwitterOAuthService(
            client_id="client-id",
            client_secret="client-secret",
            redirect_uri="http://localhost:8080/callback",
            token_file=token_file,
            transport=transport,
            **kwargs,
        )
        if token is not None:
            service.save_token(token)
        return service

    return _create
