"""
Main Pipeline Orchestrator for the Recommendation Service.

Coordinates query normalization, the cache short-circuit, thread discovery,
concurrent per-thread comment retrieval and extraction, ranking and the
cache write-through for a single request.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from recommendation_service.config.settings import settings
from recommendation_service.core.aggregator import rank
from recommendation_service.core.cache_gateway import CacheGateway
from recommendation_service.core.comment_retriever import CommentRetriever
from recommendation_service.core.query_normalizer import normalize_query
from recommendation_service.core.recommendation_extractor import RecommendationExtractor
from recommendation_service.core.thread_discovery import ThreadDiscovery
from recommendation_service.integrations.openai_client import OpenAIChatClient
from recommendation_service.integrations.reddit import RedditClient
from recommendation_service.integrations.serpapi import SerpAPIClient
from recommendation_service.models import GiftQueryORM, QueryCacheMixin, SearchQueryORM
from recommendation_service.models.dtos import ExtractedRecommendation, Thread

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineVariant:
    """
    The knobs that distinguish one recommendation endpoint from another.
    """
    name: str
    search_template: str
    prompt_subject: str
    cache_model: Type[QueryCacheMixin]
    broaden_vague_names: bool = False
    affiliate_tag: Optional[str] = None


SEARCH_VARIANT = PipelineVariant(
    name="search",
    search_template="{query} product recommendations site:reddit.com",
    prompt_subject='Reddit comments about "{query}"',
    cache_model=SearchQueryORM,
    broaden_vague_names=True,
    affiliate_tag=settings.AMAZON_AFFILIATE_TAG,
)

GIFT_IDEAS_VARIANT = PipelineVariant(
    name="gift_ideas",
    search_template="christmas gift ideas for {query} site:reddit.com recommendations",
    prompt_subject='Reddit comments about Christmas gift ideas for "{query}"',
    cache_model=GiftQueryORM,
    broaden_vague_names=False,
    affiliate_tag=settings.GIFT_AMAZON_AFFILIATE_TAG,
)


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run, already in response shape.

    On a cache hit the lists are the stored payloads, untouched.
    """
    query: str
    results: List[Dict[str, Any]] = field(default_factory=list)
    posts: List[Dict[str, Any]] = field(default_factory=list)
    cache_hit: bool = False


class RecommendationPipeline:
    """
    Orchestrates the recommendation pipeline for one variant.
    """
    def __init__(
        self,
        variant: PipelineVariant,
        discovery: ThreadDiscovery,
        retriever: CommentRetriever,
        extractor: RecommendationExtractor,
        cache: CacheGateway,
        max_threads: Optional[int] = None,
        thread_timeout: Optional[float] = None,
        max_results: Optional[int] = None,
    ):
        self.variant = variant
        self.discovery = discovery
        self.retriever = retriever
        self.extractor = extractor
        self.cache = cache
        self.max_threads = max_threads or settings.MAX_THREADS_PER_QUERY
        self.thread_timeout = thread_timeout or settings.THREAD_TASK_TIMEOUT_SECONDS
        self.max_results = max_results or settings.MAX_RESULTS

    @classmethod
    def from_clients(
        cls,
        variant: PipelineVariant,
        search_client: SerpAPIClient,
        reddit_client: RedditClient,
        llm_client: OpenAIChatClient,
    ) -> "RecommendationPipeline":
        """Build a pipeline for ``variant`` on top of shared service clients."""
        return cls(
            variant=variant,
            discovery=ThreadDiscovery(search_client, search_template=variant.search_template),
            retriever=CommentRetriever(reddit_client),
            extractor=RecommendationExtractor(
                llm_client,
                prompt_subject=variant.prompt_subject,
                broaden_vague_names=variant.broaden_vague_names,
                affiliate_tag=variant.affiliate_tag,
            ),
            cache=CacheGateway(variant.cache_model),
        )

    async def process_thread(self, query: str, thread: Thread) -> List[ExtractedRecommendation]:
        """
        Retrieve a thread's comments and extract its recommendations.
        """
        logger.info(f"[{self.variant.name}] Processing thread: {thread.url}")
        comments = await self.retriever.retrieve(thread)
        if not comments:
            logger.warning(f"Skipping thread with no usable comments: {thread.url}")
            return []
        return await self.extractor.extract(query, thread, comments)

    async def process_thread_safely(self, query: str, thread: Thread) -> List[ExtractedRecommendation]:
        """
        ``process_thread`` bounded by the per-thread deadline. Any failure yields an
        empty list so sibling threads are unaffected.
        """
        try:
            return await asyncio.wait_for(self.process_thread(query, thread), timeout=self.thread_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timed out after {self.thread_timeout}s processing thread: {thread.url}")
            return []
        except Exception as e:
            logger.error(f"Error processing thread {thread.url}: {e}", exc_info=True)
            return []

    async def run(self, raw_query: Any) -> PipelineResult:
        """
        Answer a raw query with ranked recommendations and the threads they came from.

        Raises:
            InvalidQueryError: If the query is not a string or normalizes to empty.
            Exception: Anything raised by thread discovery is fatal for the request.
        """
        query = normalize_query(raw_query)
        logger.info(f"[{self.variant.name}] Checking cache ({self.cache.table_name}) for query: {query}")

        cached = await self.cache.lookup(query)
        if cached is not None:
            logger.info(f"Cache hit for '{query}'. Returning cached results.")
            return PipelineResult(query=query, results=cached.gpt_result, posts=cached.reddit_urls, cache_hit=True)

        threads = await self.discovery.discover(query)
        selected = threads[:self.max_threads]

        per_thread = await asyncio.gather(
            *(self.process_thread_safely(query, thread) for thread in selected)
        )
        flattened = [item for items in per_thread for item in items]
        logger.info(f"Total parsed recommendations (raw): {len(flattened)}")

        final = rank(flattened, max_results=self.max_results)

        await self.cache.write_through(query, threads, final)

        return PipelineResult(
            query=query,
            results=[item.to_payload() for item in final],
            posts=[thread.model_dump(mode="json") for thread in threads],
        )
