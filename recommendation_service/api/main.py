"""
FastAPI application for the Recommendation service.

This module initializes and configures the FastAPI application that serves
the recommendation endpoints.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recommendation_service.config.settings import settings
from recommendation_service.api.endpoints import recommendations
from recommendation_service.core.pipeline import GIFT_IDEAS_VARIANT, SEARCH_VARIANT, RecommendationPipeline
from recommendation_service.integrations.openai_client import OpenAIChatClient
from recommendation_service.integrations.reddit import RedditClient, RedditTokenProvider
from recommendation_service.integrations.serpapi import SerpAPIClient
from recommendation_service.utils.db_health import check_db_connection
from recommendation_service.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Creates the shared SerpAPI, Reddit and OpenAI clients on startup, builds one
    pipeline per variant on top of them, and closes the clients on shutdown.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    search_client = SerpAPIClient()
    reddit_client = RedditClient(RedditTokenProvider())
    llm_client = OpenAIChatClient()

    app.state.pipelines = {
        variant.name: RecommendationPipeline.from_clients(variant, search_client, reddit_client, llm_client)
        for variant in (SEARCH_VARIANT, GIFT_IDEAS_VARIANT)
    }
    logger.info(f"Pipelines ready: {', '.join(app.state.pipelines)}")

    yield

    logger.info("Shutting down application")
    await search_client.close()
    await reddit_client.close()
    await llm_client.close()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Product recommendations backed by Reddit discussions.

        Each query is answered with a ranked list of products that Reddit
        commenters explicitly endorse, plus the threads they were taken from.""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {
                "name": "recommendations",
                "description": "Reddit-backed product recommendations"
            },
            {
                "name": "health",
                "description": "Health check and monitoring"
            }
        ]
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.include_router(
        recommendations.router,
        prefix="/api",
        tags=["recommendations"]
    )

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check():
        """
        Report service status, version and cache database reachability.
        """
        database_ok = await check_db_connection()
        return {
            "status": "healthy" if database_ok else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if database_ok else "unavailable",
            "debug_mode": settings.DEBUG,
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
