import os
import sys
from contextlib import asynccontextmanager
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path so the package imports without installation
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, project_root)

from recommendation_service.models.dtos import ExtractedRecommendation, Thread


def make_recommendation(
    product: str,
    score: Optional[float] = 0.5,
    reason: str = "Works well.",
    reddit_url: str = "https://www.reddit.com/r/ponds/comments/abc123/liners/",
    amazon_url: Optional[str] = None,
) -> ExtractedRecommendation:
    return ExtractedRecommendation(
        product=product,
        reason=reason,
        endorsement_score=score,
        reddit_url=reddit_url,
        amazon_url=amazon_url,
    )


@pytest.fixture
def recommendation_factory():
    """Factory for ExtractedRecommendation DTOs with sensible defaults."""
    return make_recommendation


@pytest.fixture
def pond_thread() -> Thread:
    return Thread(
        title="Best pond liner?",
        url="https://www.reddit.com/r/ponds/comments/abc123/best_pond_liner/",
        subreddit="ponds",
    )


@pytest.fixture
def mock_session():
    """An AsyncSession stand-in: ``execute`` is awaitable, ``add`` is sync."""
    session = MagicMock()
    session.execute = AsyncMock()
    return session


@pytest.fixture
def session_factory(mock_session):
    """A session factory yielding ``mock_session`` like get_db_session_context_manager does."""
    @asynccontextmanager
    async def _factory():
        yield mock_session

    return _factory
