"""
Thread Discovery component for the Recommendation Service.

Searches Google (through SerpAPI) for Reddit threads relevant to a query and
turns the organic results into Thread DTOs.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from recommendation_service.config.settings import settings
from recommendation_service.integrations.serpapi import SerpAPIClient
from recommendation_service.models.dtos import Thread

logger = logging.getLogger(__name__)

THREAD_URL_RX = re.compile(r"reddit\.com/r/([^/?#]+)")
DEFAULT_SUBREDDIT = "reddit"
DEFAULT_SEARCH_TEMPLATE = "{query} product recommendations site:reddit.com"


def parse_subreddit(url: str) -> str:
    """Return the path segment after ``/r/``, or ``"reddit"`` when there is none."""
    _, sep, rest = url.partition("/r/")
    if not sep:
        return DEFAULT_SUBREDDIT
    return rest.split("/")[0] or DEFAULT_SUBREDDIT


def threads_from_results(results: Iterable[Dict[str, Any]]) -> List[Thread]:
    """
    Keep the results that link to a Reddit thread, preserving provider order.
    """
    threads: List[Thread] = []
    for result in results:
        link = result.get("link")
        if not isinstance(link, str) or not THREAD_URL_RX.search(link):
            continue
        threads.append(
            Thread(
                title=result.get("title") or "",
                url=link,
                subreddit=parse_subreddit(link),
            )
        )
    return threads


class ThreadDiscovery:
    """
    Finds candidate Reddit threads for a normalized query.
    """
    def __init__(
        self,
        search_client: SerpAPIClient,
        search_template: str = DEFAULT_SEARCH_TEMPLATE,
        num_results: Optional[int] = None,
    ):
        """
        Args:
            search_client: Client for the search provider.
            search_template: Format string with a ``{query}`` placeholder that adds the
                recommendation intent and the ``site:reddit.com`` restriction.
            num_results: Number of organic results to request.
        """
        self.search_client = search_client
        self.search_template = search_template
        self.num_results = num_results or settings.SERPAPI_NUM_RESULTS

    def build_search_query(self, query: str) -> str:
        return self.search_template.format(query=query)

    async def discover(self, query: str) -> List[Thread]:
        """
        Return every Reddit thread found for ``query``, in provider ranking order.

        Callers decide how many of them to process. Search provider errors propagate.
        """
        search_query = self.build_search_query(query)
        logger.info(f"Searching via SerpAPI for: {search_query}")
        results = await self.search_client.search(search_query, num=self.num_results)

        for i, result in enumerate(results, start=1):
            logger.debug(f"  {i}. {result.get('title')} - {result.get('link')}")

        threads = threads_from_results(results)
        logger.info(f"{len(threads)} of {len(results)} search results are Reddit threads")
        return threads
