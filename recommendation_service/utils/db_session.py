"""Async engine and session helpers for the query cache database."""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from recommendation_service.config.settings import settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Returns a cached instance of the async engine.

    Cache reads sit on the request path, so asyncpg statements are bounded by
    ``DB_COMMAND_TIMEOUT_SECONDS`` and the pool by ``DB_POOL_SIZE``.
    """
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS},
    )


@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


@asynccontextmanager
async def get_db_session_context_manager() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a cache database session for one read or one insert.

    Commits on clean exit and rolls back on error.
    """
    factory = get_async_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
