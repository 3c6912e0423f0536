"""
SQLAlchemy ORM models for the query cache tables.

Each pipeline variant caches into its own table; both share the same layout.
"""

from sqlalchemy import JSON, BigInteger, Column, Index, Text
from sqlalchemy import TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base

_JSONType = JSON().with_variant(JSONB(), "postgresql")


class QueryCacheMixin:
    """
    Columns shared by every query cache table.

    Attributes:
        id (int): Primary key, auto-incrementing.
        query (str): The normalized query string. Lookups use exact equality.
        reddit_urls (list): The Reddit threads matched for the query, as JSON objects.
        gpt_result (list): The final recommendation list, as JSON objects.
        last_updated (datetime): Insert timestamp. Rows are never updated in place.
    """
    id = Column(BigInteger, primary_key=True, autoincrement=True)
    query = Column(Text, nullable=False, comment="Normalized query string.")
    reddit_urls = Column(_JSONType, nullable=True, comment="Matched Reddit threads.")
    gpt_result = Column(_JSONType, nullable=True, comment="Ranked recommendation list.")
    last_updated = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, query='{self.query}', last_updated='{self.last_updated}')>"


class SearchQueryORM(QueryCacheMixin, Base):
    """Cache rows for the general product search pipeline."""
    __tablename__ = "search_queries"

    __table_args__ = (
        Index("idx_search_queries_query", "query"),
    )


class GiftQueryORM(QueryCacheMixin, Base):
    """Cache rows for the gift ideas pipeline."""
    __tablename__ = "christmas_gift_queries"

    __table_args__ = (
        Index("idx_christmas_gift_queries_query", "query"),
    )
