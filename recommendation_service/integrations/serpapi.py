"""
SerpAPI client used for discovering Reddit threads.

Only the organic Google results are used; everything else in the SerpAPI
response is ignored.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from recommendation_service.config.settings import settings
from recommendation_service.exceptions import SearchProviderError

logger = logging.getLogger(__name__)


class SerpAPIClient:
    """
    Async client for the SerpAPI Google search endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        search_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the SerpAPI client.

        Args:
            api_key: SerpAPI key. Defaults to ``settings.SERPAPI_KEY``.
            search_url: Search endpoint. Defaults to ``settings.SERPAPI_URL``.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key if api_key is not None else settings.SERPAPI_KEY
        self.search_url = search_url or settings.SERPAPI_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

        self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def search(self, q: str, num: int = 10) -> List[Dict[str, Any]]:
        """
        Run a Google search and return its organic results.

        Args:
            q: The full search string, including any ``site:`` operators.
            num: Number of results to request.

        Returns:
            List of ``{"title": ..., "link": ...}`` dicts in provider order. An
            absent ``organic_results`` key yields an empty list.

        Raises:
            SearchProviderError: If the request fails or returns a non-200 status.
        """
        params = {"q": q, "num": num, "api_key": self.api_key}
        try:
            response = await self.client.get(self.search_url, params=params)
        except httpx.HTTPError as e:
            raise SearchProviderError(f"SerpAPI request failed: {e}") from e

        if response.status_code != 200:
            raise SearchProviderError(
                f"SerpAPI returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(f"SerpAPI returned invalid JSON: {e}") from e

        results = data.get("organic_results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            results = []
        logger.info(f"SerpAPI returned {len(results)} organic results for: {q}")
        return [r for r in results if isinstance(r, dict)]
