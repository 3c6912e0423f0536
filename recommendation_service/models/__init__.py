"""
Models package for the Recommendation service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from . import base
from . import query_cache_orm

from .base import Base
from .query_cache_orm import GiftQueryORM, QueryCacheMixin, SearchQueryORM

from .dtos import (
    CacheRecord,
    ErrorResponse,
    ExtractedRecommendation,
    SearchResponse,
    Thread,
)

__all__ = [
    # Base
    "Base",
    # ORMs
    "GiftQueryORM",
    "QueryCacheMixin",
    "SearchQueryORM",
    # DTOs
    "CacheRecord",
    "ErrorResponse",
    "ExtractedRecommendation",
    "SearchResponse",
    "Thread",
]
