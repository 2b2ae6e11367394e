from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pathways_data.core.envelope import captures_errors
from pathways_data.core.errors import ValidationFailedError
from pathways_data.repositories.query import FilterInput, QueryBuilder
from pathways_data.schemas.catalog import (
    CountryFilter,
    CourseFilter,
    PathwayFilter,
    UniversityFilter,
)
from pathways_data.schemas.common import Result
from pathways_data.services.base import BaseService
from pathways_data.services.cache import ReferenceCache
from pathways_data.services.statistics import StatisticsAggregator

logger = logging.getLogger(__name__)

COUNTRIES_KEY = "countries"
PATHWAYS_KEY = "pathways"


class _ReferenceLoadFailed(Exception):
    """Carries a failed envelope out of a cache loader so the failure is not cached."""

    def __init__(self, result: Result) -> None:
        super().__init__(result.error.message if result.error else "load failed")
        self.result = result


def _require_id(value, label: str) -> None:
    if value is None:
        raise ValidationFailedError(f"{label} is required")


class CatalogService(BaseService):
    """
    Read operations over countries, universities, courses and pathways.

    Countries and pathways are served through the reference cache; universities
    and courses always hit the store.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ReferenceCache,
        queries: Optional[QueryBuilder] = None,
    ) -> None:
        super().__init__(session_factory, queries)
        self.cache = cache

    async def _cached_list(self, key: str, entity: str) -> Result:
        async def load():
            result = await self.queries.fetch_all(entity)
            if not result.ok:
                raise _ReferenceLoadFailed(result)
            return result.data

        try:
            rows = await self.cache.get_or_load(key, load)
        except _ReferenceLoadFailed as exc:
            return exc.result
        return Result.success(rows)

    # PUBLIC_INTERFACE
    @captures_errors("listing countries")
    async def list_countries(self) -> Result:
        """All countries ordered by name (cached)."""
        return await self._cached_list(COUNTRIES_KEY, "country")

    # PUBLIC_INTERFACE
    @captures_errors("fetching country")
    async def get_country(self, country_id: int) -> Result:
        _require_id(country_id, "country_id")
        return await self.queries.fetch_one("country", CountryFilter(id=country_id))

    # PUBLIC_INTERFACE
    async def list_universities(self, filters: FilterInput = None) -> Result:
        """
        Universities with their country embedded, ordered by name.

        Parameters:
            filters: UniversityFilter (country_id, university_type, state) or an equivalent mapping.
        """
        return await self.queries.fetch_all("university", filters=filters)

    # PUBLIC_INTERFACE
    @captures_errors("fetching university")
    async def get_university(self, university_id: int) -> Result:
        _require_id(university_id, "university_id")
        return await self.queries.fetch_one("university", UniversityFilter(id=university_id))

    # PUBLIC_INTERFACE
    async def list_courses(self, filters: FilterInput = None) -> Result:
        """
        Courses with university and country embedded, ordered by program name.

        Parameters:
            filters: CourseFilter (university_id, degree_level) or an equivalent mapping.
        """
        return await self.queries.fetch_all("course", filters=filters)

    # PUBLIC_INTERFACE
    @captures_errors("fetching course")
    async def get_course(self, course_id: int) -> Result:
        _require_id(course_id, "course_id")
        return await self.queries.fetch_one("course", CourseFilter(id=course_id))

    # PUBLIC_INTERFACE
    @captures_errors("listing pathways")
    async def list_pathways(self) -> Result:
        """All pathways ordered by name (cached)."""
        return await self._cached_list(PATHWAYS_KEY, "pathway")

    # PUBLIC_INTERFACE
    @captures_errors("fetching pathway")
    async def get_pathway(self, pathway_id: int) -> Result:
        _require_id(pathway_id, "pathway_id")
        return await self.queries.fetch_one("pathway", PathwayFilter(id=pathway_id))

    # PUBLIC_INTERFACE
    async def search_universities(self, term: Optional[str], filters: FilterInput = None) -> Result:
        """Match ``term`` against name, city or state (case-insensitive), then apply filters."""
        return await self.queries.fetch_all("university", search=term, filters=filters)

    # PUBLIC_INTERFACE
    async def search_courses(self, term: Optional[str], filters: FilterInput = None) -> Result:
        """Match ``term`` against the program name (case-insensitive), then apply filters."""
        return await self.queries.fetch_all("course", search=term, filters=filters)

    # PUBLIC_INTERFACE
    @captures_errors("computing statistics")
    async def get_statistics(self) -> Result:
        """Counts per collection; see StatisticsAggregator."""
        return Result.success(await StatisticsAggregator(self).compute())

    # PUBLIC_INTERFACE
    def invalidate_reference_data(self) -> None:
        """Forget cached countries and pathways; the next list call reads the store."""
        self.cache.invalidate(COUNTRIES_KEY)
        self.cache.invalidate(PATHWAYS_KEY)
