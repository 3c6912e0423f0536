"""
Recommendation API endpoints.

Both routes accept ``{"query": "<text or Amazon URL>"}`` and answer with
``{"results": [...], "posts": [...]}``. Errors are reported as ``{"error": ...}``.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from recommendation_service.core.pipeline import RecommendationPipeline
from recommendation_service.exceptions import InvalidQueryError
from recommendation_service.models.dtos import ErrorResponse, SearchResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def get_search_pipeline(request: Request) -> RecommendationPipeline:
    """Get the general search pipeline built at startup."""
    return request.app.state.pipelines["search"]


def get_gift_ideas_pipeline(request: Request) -> RecommendationPipeline:
    """Get the gift ideas pipeline built at startup."""
    return request.app.state.pipelines["gift_ideas"]


async def _read_query(request: Request) -> Any:
    """Return the ``query`` member of the JSON body, or None if the body is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return body.get("query")


async def _run_pipeline(request: Request, pipeline: RecommendationPipeline, failure_message: str) -> JSONResponse:
    raw_query = await _read_query(request)
    try:
        result = await pipeline.run(raw_query)
    except InvalidQueryError as e:
        logger.warning(f"Rejected query {raw_query!r}: {e}")
        return JSONResponse(status_code=400, content=ErrorResponse(error=str(e)).model_dump())
    except Exception as e:
        logger.error(f"Fatal error in {pipeline.variant.name} pipeline: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=ErrorResponse(error=failure_message).model_dump())

    response = SearchResponse(results=result.results, posts=result.posts)
    return JSONResponse(status_code=200, content=response.model_dump())


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search(
    request: Request,
    pipeline: RecommendationPipeline = Depends(get_search_pipeline),
) -> JSONResponse:
    """
    Recommend products for a free-text query (or Amazon product link) from Reddit threads.
    """
    return await _run_pipeline(request, pipeline, "Search failed")


@router.post(
    "/gift-ideas",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def gift_ideas(
    request: Request,
    pipeline: RecommendationPipeline = Depends(get_gift_ideas_pipeline),
) -> JSONResponse:
    """
    Recommend Christmas gifts for a recipient description from Reddit threads.
    """
    return await _run_pipeline(request, pipeline, "Christmas gift search failed")
