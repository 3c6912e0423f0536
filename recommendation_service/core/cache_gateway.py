"""
Cache Gateway component for the Recommendation Service.

Reads and writes pipeline results keyed by the normalized query. The cache never
expires on its own and rows are only ever inserted. Both operations fail open:
errors are logged and the request carries on as if the cache were absent.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Type

from pydantic import ValidationError
from sqlalchemy import select

from recommendation_service.models import CacheRecord, ExtractedRecommendation, QueryCacheMixin, Thread
from recommendation_service.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)


class CacheGateway:
    """
    Exact-match lookup and write-through against one query cache table.
    """
    def __init__(
        self,
        orm_model: Type[QueryCacheMixin],
        session_factory: Callable = get_db_session_context_manager,
    ):
        """
        Args:
            orm_model: The ORM class of the cache table to use.
            session_factory: Callable returning an async context manager that yields
                an AsyncSession and commits on exit.
        """
        self.orm_model = orm_model
        self._session_factory = session_factory

    @property
    def table_name(self) -> str:
        return self.orm_model.__tablename__

    async def lookup(self, query: str) -> Optional[CacheRecord]:
        """
        Fetch the most recent cached result for ``query``.

        Returns:
            The cached record if one exists with a non-empty recommendation list,
            else None. Database errors are logged and reported as a miss.
        """
        model = self.orm_model
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(model)
                    .where(model.query == query)
                    .order_by(model.last_updated.desc(), model.id.desc())
                    .limit(1)
                )
                result = await session.execute(stmt)
                row = result.scalars().first()
        except Exception as e:
            logger.error(f"Cache lookup failed on {self.table_name} for query '{query}': {e}", exc_info=True)
            return None

        if row is None or not row.gpt_result:
            return None

        try:
            return CacheRecord(
                query=row.query,
                reddit_urls=row.reddit_urls or [],
                gpt_result=row.gpt_result,
                last_updated=row.last_updated,
            )
        except ValidationError as e:
            logger.error(f"Malformed cache row in {self.table_name} for query '{query}': {e}")
            return None

    async def write_through(
        self,
        query: str,
        threads: Sequence[Thread],
        recommendations: Sequence[ExtractedRecommendation],
    ) -> bool:
        """
        Insert a new cache row for ``query``.

        Returns:
            True if the row was stored, False if the insert failed (the failure is logged).
        """
        reddit_urls: List[dict] = [thread.model_dump(mode="json") for thread in threads]
        gpt_result: List[dict] = [rec.to_payload() for rec in recommendations]
        try:
            async with self._session_factory() as session:
                session.add(
                    self.orm_model(
                        query=query,
                        reddit_urls=reddit_urls,
                        gpt_result=gpt_result,
                        last_updated=datetime.now(timezone.utc),
                    )
                )
            logger.info(f"Cached {len(gpt_result)} results for query '{query}' in {self.table_name}")
            return True
        except Exception as e:
            logger.error(f"Cache insert error ({self.table_name}) for query '{query}': {e}", exc_info=True)
            return False
