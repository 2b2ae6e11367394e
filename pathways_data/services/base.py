from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pathways_data.repositories.query import QueryBuilder


class BaseService:
    """
    Base class for services. Holds the session factory and the query builder.

    Services keep business logic and orchestration, delegating data access
    to repositories. Public methods return Result envelopes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queries: Optional[QueryBuilder] = None,
    ) -> None:
        self.session_factory = session_factory
        self.queries = queries or QueryBuilder(session_factory)
