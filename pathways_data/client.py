from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from pathways_data.core.logging import configure_logging
from pathways_data.core.settings import AppSettings, get_app_settings
from pathways_data.db.config import Settings
from pathways_data.db.session import build_engine, build_session_factory, create_schema
from pathways_data.repositories.query import QueryBuilder
from pathways_data.services.cache import ReferenceCache
from pathways_data.services.catalog import CatalogService
from pathways_data.services.counseling import Clock, CounselorMatchingService

logger = logging.getLogger(__name__)


class PathwaysDataLayer:
    """
    Entry point wiring the engine, session factory, reference cache and services.

    Usage:
        async with PathwaysDataLayer.from_settings() as data:
            result = await data.catalog.list_countries()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        settings: Optional[AppSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or get_app_settings()
        self.engine = engine
        self.session_factory = build_session_factory(engine)
        self.cache = ReferenceCache(ttl_seconds=self.settings.REFERENCE_CACHE_TTL_SECONDS)
        self.queries = QueryBuilder(self.session_factory)
        self.catalog = CatalogService(self.session_factory, self.cache, queries=self.queries)
        self.counseling = CounselorMatchingService(
            self.session_factory, queries=self.queries, settings=self.settings, clock=clock
        )

    # PUBLIC_INTERFACE
    @classmethod
    def from_settings(
        cls,
        app_settings: Optional[AppSettings] = None,
        db_settings: Optional[Settings] = None,
        configure_logs: bool = False,
    ) -> "PathwaysDataLayer":
        """Build the layer from environment-backed settings; optionally install the log format."""
        app_settings = app_settings or get_app_settings()
        if configure_logs:
            configure_logging(app_settings.LOG_LEVEL)
        engine = build_engine(db_settings)
        logger.info(
            "%s ready (environment=%s)", app_settings.APP_NAME, app_settings.ENVIRONMENT or "-"
        )
        return cls(engine, settings=app_settings)

    # PUBLIC_INTERFACE
    async def create_schema(self) -> None:
        """Create tables straight from metadata (development databases; use migrations elsewhere)."""
        await create_schema(self.engine)

    # PUBLIC_INTERFACE
    async def close(self) -> None:
        """Clear the reference cache and dispose of the engine's connection pool."""
        await self.cache.close()
        await self.engine.dispose()

    async def __aenter__(self) -> "PathwaysDataLayer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
