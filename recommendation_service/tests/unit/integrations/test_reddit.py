"""
Unit tests for Reddit token management and thread fetching.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from httpx import Response

from recommendation_service.exceptions import RedditAPIError
from recommendation_service.integrations.reddit import AuthToken, RedditClient, RedditTokenProvider


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_response(status_code=200, payload=None):
    response = MagicMock(spec=Response)
    response.status_code = status_code
    response.json.return_value = payload
    return response


def token_response(value="tok-1", expires_in=3600):
    return make_response(payload={"access_token": value, "token_type": "bearer", "expires_in": expires_in})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http_client():
    return AsyncMock()


@pytest.fixture
def token_provider(http_client, clock):
    return RedditTokenProvider(
        client_id="cid",
        client_secret="secret",
        username="user",
        password="pass",
        user_agent="recommendation-service/0.1 by user",
        token_url="https://www.reddit.com/api/v1/access_token",
        refresh_margin_seconds=10,
        http_client=http_client,
        clock=clock,
    )


def test_auth_token_validity():
    token = AuthToken(value="abc", expires_at=100.0)
    assert token.is_valid(99.9)
    assert not token.is_valid(100.0)
    assert not AuthToken(value="", expires_at=100.0).is_valid(0)


class TestRedditTokenProvider:
    """Test cases for RedditTokenProvider."""

    @pytest.mark.asyncio
    async def test_first_call_requests_password_grant(self, token_provider, http_client):
        """The first call posts the password grant with basic auth and the configured user agent."""
        http_client.post.return_value = token_response()

        assert await token_provider.get_token() == "tok-1"

        http_client.post.assert_awaited_once_with(
            "https://www.reddit.com/api/v1/access_token",
            data={"grant_type": "password", "username": "user", "password": "pass"},
            auth=("cid", "secret"),
            headers={"User-Agent": "recommendation-service/0.1 by user"},
        )

    @pytest.mark.asyncio
    async def test_token_is_reused_until_refresh_margin(self, token_provider, http_client, clock):
        http_client.post.side_effect = [token_response("tok-1"), token_response("tok-2")]

        assert await token_provider.get_token() == "tok-1"
        clock.now += 3589
        assert await token_provider.get_token() == "tok-1"
        assert http_client.post.await_count == 1

        # within 10 seconds of expiry the token is refreshed
        clock.now += 1
        assert await token_provider.get_token() == "tok-2"
        assert http_client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise(self, token_provider, http_client):
        http_client.post.return_value = make_response(status_code=401, payload={"error": "invalid_grant"})

        with pytest.raises(RedditAPIError) as exc_info:
            await token_provider.get_token()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_access_token_raises(self, token_provider, http_client):
        http_client.post.return_value = make_response(payload={"error": "invalid_grant"})

        with pytest.raises(RedditAPIError, match="invalid_grant"):
            await token_provider.get_token()

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, token_provider, http_client):
        http_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(RedditAPIError):
            await token_provider.get_token()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, token_provider, http_client):
        await token_provider.close()
        http_client.aclose.assert_not_called()


class TestRedditClient:
    """Test cases for RedditClient.fetch_thread."""

    @pytest.mark.asyncio
    async def test_fetch_thread_sends_bearer_token(self, http_client):
        provider = AsyncMock()
        provider.get_token.return_value = "tok-1"
        listing = [{"kind": "Listing"}, {"kind": "Listing", "data": {"children": []}}]
        http_client.get.return_value = make_response(payload=listing)
        client = RedditClient(
            provider,
            api_base_url="https://oauth.reddit.com/",
            user_agent="recommendation-service/0.1 by user",
            http_client=http_client,
        )

        assert await client.fetch_thread("abc123") == listing

        http_client.get.assert_awaited_once_with(
            "https://oauth.reddit.com/comments/abc123",
            headers={
                "Authorization": "Bearer tok-1",
                "User-Agent": "recommendation-service/0.1 by user",
            },
        )

    @pytest.mark.asyncio
    async def test_fetch_thread_non_200_raises(self, http_client):
        provider = AsyncMock()
        provider.get_token.return_value = "tok-1"
        http_client.get.return_value = make_response(status_code=404)
        client = RedditClient(provider, api_base_url="https://oauth.reddit.com", http_client=http_client)

        with pytest.raises(RedditAPIError) as exc_info:
            await client.fetch_thread("gone")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_close_closes_token_provider(self, http_client):
        provider = AsyncMock()
        client = RedditClient(provider, http_client=http_client)

        await client.close()

        provider.close.assert_awaited_once()
