"""Tests for the Twitter bookmarks client."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from tests.conftest import RecordingTransport
from tw2dynalist.models.twitter_token import TwitterToken
from tw2dynalist.services.cache import ProcessedCache
from tw2dynalist.services.twitter.client import Tweet, TwitterAPIError, TwitterClient
from tw2dynalist.services.twitter.oauth import ReauthorizationRequired

BOOKMARKS_BODY = {
    "data": [
        {"id": "1", "text": "first tweet", "author_id": "100"},
        {"id": "2", "text": "second tweet", "author_id": "200"},
    ],
    "includes": {"users": [{"id": "100", "username": "alice", "name": "Alice"}]},
}


@pytest.fixture
def make_client(make_oauth, stored_token: TwitterToken):
    def _create(
        handler: Callable[[httpx.Request], httpx.Response],
        oauth_handler: Callable[[httpx.Request], httpx.Response] | None = None,
        token: TwitterToken | None = None,
    ) -> TwitterClient:
        oauth = make_oauth(handler=oauth_handler, token=token or stored_token)
        return TwitterClient(
            oauth,
            "test_user",
            removal_delay=0,
            transport=RecordingTransport(handler),
        )

    return _create


class TestListBookmarks:
    async def test_parses_tweets_and_builds_urls(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(200, json=BOOKMARKS_BODY))

        tweets = await client.list_bookmarks()

        assert tweets == [
            Tweet(id="1", text="first tweet", url="https://twitter.com/alice/status/1"),
            Tweet(id="2", text="second tweet", url="https://twitter.com/user/status/2"),
        ]
        request = client._transport.requests[0]
        assert request.url.path == "/2/users/42/bookmarks"
        assert request.url.params["max_results"] == "100"
        assert request.url.params["expansions"] == "author_id"
        assert request.headers["Authorization"] == "Bearer access-1"

    async def test_empty(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"meta": {}}))
        assert await client.list_bookmarks() == []

    async def test_rate_limited_returns_empty(self, make_client) -> None:
        client = make_client(
            lambda request: httpx.Response(429, json={"title": "Too Many Requests"})
        )
        assert await client.list_bookmarks() == []

    async def test_server_error_raises(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(500, json={"detail": "boom"}))

        with pytest.raises(TwitterAPIError) as exc_info:
            await client.list_bookmarks()

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "boom"

    async def test_unauthorized_refreshes_and_retries(self, make_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.headers["Authorization"] == "Bearer access-1":
                return httpx.Response(401, json={"title": "Unauthorized"})
            return httpx.Response(200, json=BOOKMARKS_BODY)

        client = make_client(
            handler,
            oauth_handler=lambda request: httpx.Response(
                200, json={"access_token": "access-2", "expires_in": 7200}
            ),
        )

        tweets = await client.list_bookmarks()

        assert len(tweets) == 2
        assert [r.headers["Authorization"] for r in client._transport.requests] == [
            "Bearer access-1",
            "Bearer access-2",
        ]
        assert client.oauth.refresh_count == 1

    async def test_unauthorized_with_failed_refresh(
        self, make_client, token_file: Path
    ) -> None:
        client = make_client(
            lambda request: httpx.Response(401),
            oauth_handler=lambda request: httpx.Response(400, json={"error": "invalid"}),
        )

        with pytest.raises(ReauthorizationRequired):
            await client.list_bookmarks()

        assert not token_file.exists()
        assert len(client._transport.requests) == 1

    async def test_network_error(self, make_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(TwitterAPIError) as exc_info:
            await client.list_bookmarks()

        assert exc_info.value.status_code == 0


class TestResolveUserID:
    async def test_uses_stored_id(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(500))
        assert await client.resolve_user_id() == "42"
        assert client._transport.requests == []

    async def test_looks_up_and_stores(self, make_client, make_oauth) -> None:
        client = make_client(
            lambda request: httpx.Response(200, json={"data": {"id": "777"}}),
            token=TwitterToken(access_token="access-1", refresh_token="r"),
        )

        assert await client.resolve_user_id() == "777"

        assert client._transport.requests[0].url.path == "/2/users/by/username/test_user"
        assert make_oauth().load_token().user_id == "777"

    async def test_lookup_failure(self, make_client) -> None:
        client = make_client(
            lambda request: httpx.Response(404, json={"title": "Not Found"}),
            token=TwitterToken(access_token="access-1", user_id="me"),
        )

        with pytest.raises(TwitterAPIError):
            await client.resolve_user_id()


class TestRemoveBookmark:
    @pytest.mark.parametrize("status", [200, 204, 404])
    async def test_success_statuses(self, make_client, status: int) -> None:
        client = make_client(lambda request: httpx.Response(status))

        await client.remove_bookmark("1")

        request = client._transport.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/2/users/42/bookmarks/1"

    async def test_forbidden(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(403))

        with pytest.raises(TwitterAPIError, match="insufficient permissions"):
            await client.remove_bookmark("1")

    async def test_other_error(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(TwitterAPIError, match=r"HTTP 500"):
            await client.remove_bookmark("1")


class TestCleanup:
    async def test_removes_only_processed(self, make_client, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=BOOKMARKS_BODY)
            return httpx.Response(200, json={"data": {"bookmarked": False}})

        client = make_client(handler)
        cache = ProcessedCache(tmp_path / "cache.json", ["1"])

        result = await client.cleanup_processed_bookmarks(cache)

        assert result.removed == 1
        assert result.failed == 0
        deletes = [r for r in client._transport.requests if r.method == "DELETE"]
        assert [r.url.path for r in deletes] == ["/2/users/42/bookmarks/1"]

    async def test_counts_failures(self, make_client, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=BOOKMARKS_BODY)
            return httpx.Response(500)

        client = make_client(handler)
        cache = ProcessedCache(tmp_path / "cache.json", ["1", "2"])

        result = await client.cleanup_processed_bookmarks(cache)

        assert result.removed == 0
        assert result.failed == 2


class TestMalformedResponses:
    async def test_non_json_bookmarks_body(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(200, text="<html>proxy error</html>"))

        with pytest.raises(TwitterAPIError, match="Invalid JSON response"):
            await client.list_bookmarks()

    async def test_bookmarks_body_not_an_object(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(200, json=[{"id": "1"}]))

        with pytest.raises(TwitterAPIError, match="expected an object"):
            await client.list_bookmarks()

    async def test_bookmark_entries_without_id(self, make_client) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"data": [{"text": "x"}]}))

        with pytest.raises(TwitterAPIError, match="Unexpected bookmarks response shape"):
            await client.list_bookmarks()

    async def test_non_json_user_lookup(self, make_client) -> None:
        client = make_client(
            lambda request: httpx.Response(200, text="<html>proxy error</html>"),
            token=TwitterToken(access_token="access-1", refresh_token="r"),
        )

        with pytest.raises(TwitterAPIError, match="Invalid JSON response"):
            await client.resolve_user_id()
