"""Exception types raised across the recommendation service."""

from typing import Optional


class RecommendationServiceError(Exception):
    """Base class for all service errors."""


class InvalidQueryError(RecommendationServiceError):
    """The caller supplied a query that is not a string or is empty after normalization."""


class UpstreamServiceError(RecommendationServiceError):
    """An external collaborator (search provider, Reddit) returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class SearchProviderError(UpstreamServiceError):
    """SerpAPI request failed."""


class RedditAPIError(UpstreamServiceError):
    """Reddit token issuance or thread fetch failed."""
