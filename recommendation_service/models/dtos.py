"""
Pydantic Data Transfer Objects (DTOs) for the Recommendation service.

These models are used for API responses, cache payloads and internal data transfer
between the pipeline stages.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Thread(BaseModel):
    """
    A Reddit discussion thread matched for a query.

    ``score`` and ``num_comments`` are reserved; the search provider does not
    supply them, so they are always zero.
    """
    title: str = ""
    url: str
    subreddit: str = "reddit"
    score: int = 0
    num_comments: int = 0


class ExtractedRecommendation(BaseModel):
    """
    A single product recommendation extracted from a thread's comments.

    Serialized with the camel-case link keys (``redditUrl``, ``amazonUrl``) used by
    the public API and by the cache rows.
    """
    product: str
    reason: str = ""
    endorsement_score: Optional[float] = None
    reddit_url: str = Field(..., alias="redditUrl")
    amazon_url: Optional[str] = Field(None, alias="amazonUrl")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-compatible dict using the public key names."""
        return self.model_dump(by_alias=True, mode="json")


class CacheRecord(BaseModel):
    """
    A cached pipeline result for one normalized query.

    The lists are kept as raw JSON payloads so a cache hit is returned exactly
    as it was stored.
    """
    query: str
    reddit_urls: List[Dict[str, Any]] = Field(default_factory=list)
    gpt_result: List[Dict[str, Any]] = Field(default_factory=list)
    last_updated: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SearchResponse(BaseModel):
    """Response model for the recommendation endpoints."""
    results: List[Dict[str, Any]]
    posts: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    """Error body returned with 400 and 500 responses."""
    error: str
