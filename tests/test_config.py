"""Tests for settings loading."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from tw2dynalist.config import Settings, parse_duration
from tests.conftest import REQUIRED_ENV


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in Settings.model_fields:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


class TestLoad:
    def test_reads_environment(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("CACHE_FILE_PATH", "/tmp/cache.json")
        env.setenv("TOKEN_FILE_PATH", "/tmp/token.json")
        env.setenv("CHECK_INTERVAL", "5m")
        env.setenv("LOG_LEVEL", "debug")
        env.setenv("REMOVE_BOOKMARKS", "true")
        env.setenv("CLEANUP_PROCESSED_BOOKMARKS", "true")
        env.setenv("CALLBACK_PORT", "8888")

        cfg = Settings(_env_file=None)

        assert cfg.DYNALIST_TOKEN == "test_dynalist_token"
        assert cfg.TWITTER_CLIENT_ID == "test_twitter_client_id"
        assert cfg.TWITTER_CLIENT_SECRET == "test_twitter_client_secret"
        assert cfg.TWITTER_REDIRECT_URL == "http://localhost:8080/callback"
        assert cfg.TW_USER == "test_user"
        assert cfg.CACHE_FILE_PATH == "/tmp/cache.json"
        assert cfg.TOKEN_FILE_PATH == "/tmp/token.json"
        assert cfg.CHECK_INTERVAL == timedelta(minutes=5)
        assert cfg.LOG_LEVEL == "DEBUG"
        assert cfg.REMOVE_BOOKMARKS is True
        assert cfg.CLEANUP_PROCESSED_BOOKMARKS is True
        assert cfg.CALLBACK_PORT == 8888

    def test_defaults(self, env: pytest.MonkeyPatch) -> None:
        cfg = Settings(_env_file=None)

        assert cfg.CACHE_FILE_PATH == "cache.json"
        assert cfg.TOKEN_FILE_PATH == "token.json"
        assert cfg.CHECK_INTERVAL == timedelta(hours=1)
        assert cfg.LOG_LEVEL == "INFO"
        assert cfg.REMOVE_BOOKMARKS is False
        assert cfg.CLEANUP_PROCESSED_BOOKMARKS is False
        assert cfg.CALLBACK_PORT == 8080
        assert cfg.NTFY_SERVER == ""
        assert "offline.access" in cfg.scopes

    @pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
    def test_required_variable_missing(self, env: pytest.MonkeyPatch, missing: str) -> None:
        env.delenv(missing)
        with pytest.raises(ValidationError, match=missing):
            Settings(_env_file=None)

    def test_username_at_sign_is_stripped(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("TW_USER", "@someone")
        assert Settings(_env_file=None).TW_USER == "someone"

    def test_invalid_check_interval(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("CHECK_INTERVAL", "soon")
        with pytest.raises(ValidationError, match="CHECK_INTERVAL"):
            Settings(_env_file=None)

    def test_zero_check_interval_rejected(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("CHECK_INTERVAL", "0s")
        with pytest.raises(ValidationError, match="must be positive"):
            Settings(_env_file=None)


class TestParseDuration:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("90s", timedelta(seconds=90)),
            ("5m", timedelta(minutes=5)),
            ("1h", timedelta(hours=1)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1m30s", timedelta(minutes=1, seconds=30)),
            ("500ms", timedelta(milliseconds=500)),
            ("1.5h", timedelta(minutes=90)),
            ("3600", timedelta(hours=1)),
        ],
    )
    def test_valid(self, value: str, expected: timedelta) -> None:
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "5x", "m5", "5m garbage", "inf"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_duration(value)
