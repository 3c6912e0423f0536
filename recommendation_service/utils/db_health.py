"""Database health check used by the /health endpoint."""

import logging

from sqlalchemy import text

from recommendation_service.utils.db_session import get_async_engine

logger = logging.getLogger(__name__)


async def check_db_connection() -> bool:
    """
    Test the cache database connection.

    Returns:
        bool: True if connection successful, False otherwise.
    """
    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Cache database health check failed: {e}")
        return False
