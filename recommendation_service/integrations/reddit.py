"""
Reddit API access: OAuth token management and thread fetching.

A single ``RedditTokenProvider`` is shared by every comment-retrieval task. The
refresh is idempotent, so concurrent refreshes simply overwrite each other and
no lock is taken.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from recommendation_service.config.settings import settings
from recommendation_service.exceptions import RedditAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthToken:
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return bool(self.value) and now < self.expires_at


class RedditTokenProvider:
    """
    Lazily obtains and caches a Reddit OAuth token via the password grant.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        user_agent: Optional[str] = None,
        token_url: Optional[str] = None,
        refresh_margin_seconds: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_id = client_id if client_id is not None else settings.REDDIT_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.REDDIT_CLIENT_SECRET
        self.username = username if username is not None else settings.REDDIT_USERNAME
        self.password = password if password is not None else settings.REDDIT_PASSWORD
        self.user_agent = user_agent or settings.REDDIT_USER_AGENT
        self.token_url = token_url or settings.REDDIT_TOKEN_URL
        self.refresh_margin_seconds = (
            refresh_margin_seconds
            if refresh_margin_seconds is not None
            else settings.REDDIT_TOKEN_REFRESH_MARGIN_SECONDS
        )
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS))
        self._clock = clock
        self._token: Optional[AuthToken] = None

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def get_token(self) -> str:
        """
        Return a valid access token, refreshing it when missing or about to expire.

        Raises:
            RedditAPIError: If the token endpoint rejects the request.
        """
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token.value

        token = await self._refresh()
        self._token = token
        return token.value

    async def _refresh(self) -> AuthToken:
        logger.info("Requesting new Reddit access token")
        now = self._clock()
        try:
            response = await self.client.post(
                self.token_url,
                data={
                    "grant_type": "password",
                    "username": self.username,
                    "password": self.password,
                },
                auth=(self.client_id, self.client_secret),
                headers={"User-Agent": self.user_agent},
            )
        except httpx.HTTPError as e:
            raise RedditAPIError(f"Reddit token request failed: {e}") from e

        if response.status_code != 200:
            raise RedditAPIError(
                f"Reddit token request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        access_token = data.get("access_token")
        if not access_token:
            raise RedditAPIError(f"Reddit token response missing access_token: {data.get('error', 'unknown error')}")

        expires_in = float(data.get("expires_in", 0))
        return AuthToken(value=access_token, expires_at=now + expires_in - self.refresh_margin_seconds)


class RedditClient:
    """
    Authenticated reader for Reddit thread listings.
    """

    def __init__(
        self,
        token_provider: RedditTokenProvider,
        api_base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.token_provider = token_provider
        self.api_base_url = (api_base_url or settings.REDDIT_API_BASE_URL).rstrip("/")
        self.user_agent = user_agent or settings.REDDIT_USER_AGENT
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS))

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
        await self.token_provider.close()

    async def fetch_thread(self, post_id: str) -> Any:
        """
        Fetch the raw JSON listing pair (post, comments) for a thread.

        Raises:
            RedditAPIError: On any non-200 response.
        """
        token = await self.token_provider.get_token()
        response = await self.client.get(
            f"{self.api_base_url}/comments/{post_id}",
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": self.user_agent,
            },
        )
        if response.status_code != 200:
            raise RedditAPIError(
                f"Reddit fetch failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()
