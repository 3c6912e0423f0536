from .aggregator import deduplicate, dedup_key, normalize_product_name, rank
from .cache_gateway import CacheGateway
from .comment_retriever import CommentRetriever, extract_post_id
from .query_normalizer import extract_title_from_marketplace_url, normalize_query
from .recommendation_extractor import RecommendationExtractor
from .thread_discovery import ThreadDiscovery
from .pipeline import (
    GIFT_IDEAS_VARIANT,
    SEARCH_VARIANT,
    PipelineResult,
    PipelineVariant,
    RecommendationPipeline,
)

__all__ = [
    "CacheGateway",
    "CommentRetriever",
    "GIFT_IDEAS_VARIANT",
    "PipelineResult",
    "PipelineVariant",
    "RecommendationExtractor",
    "RecommendationPipeline",
    "SEARCH_VARIANT",
    "ThreadDiscovery",
    "dedup_key",
    "deduplicate",
    "extract_post_id",
    "extract_title_from_marketplace_url",
    "normalize_product_name",
    "normalize_query",
    "rank",
]
