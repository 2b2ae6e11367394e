from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Union

from pathways_data.schemas.catalog import CatalogStatistics
from pathways_data.schemas.common import Result

if TYPE_CHECKING:
    from pathways_data.services.catalog import CatalogService

logger = logging.getLogger(__name__)


def _count(label: str, result: Union[Result, BaseException]) -> int:
    if isinstance(result, BaseException):
        logger.warning("Counting %s degraded to 0: %r", label, result)
        return 0
    if not result.ok or result.data is None:
        logger.warning("Counting %s degraded to 0: %s", label, result.error.message if result.error else "no data")
        return 0
    return len(result.data)


class StatisticsAggregator:
    """
    Fan-out/fan-in counts over the catalog.

    Holds no state and caches nothing; each call reflects the current cache and store.
    """

    def __init__(self, catalog: "CatalogService") -> None:
        self.catalog = catalog

    # PUBLIC_INTERFACE
    async def compute(self) -> CatalogStatistics:
        """Run the four list calls concurrently; a failed branch counts as zero."""
        countries, universities, courses, pathways = await asyncio.gather(
            self.catalog.list_countries(),
            self.catalog.list_universities(),
            self.catalog.list_courses(),
            self.catalog.list_pathways(),
            return_exceptions=True,
        )
        return CatalogStatistics(
            countries=_count("countries", countries),
            universities=_count("universities", universities),
            courses=_count("courses", courses),
            pathways=_count("pathways", pathways),
        )
