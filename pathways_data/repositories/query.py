from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from sqlalchemy import Select, inspect as sa_inspect, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from pathways_data.core.envelope import captures_errors
from pathways_data.core.errors import AmbiguousResultError, NotFoundError, ValidationFailedError
from pathways_data.db.models.catalog import Country, Course, Pathway, University
from pathways_data.db.models.counseling import Counselor, CounselorRequest
from pathways_data.schemas.catalog import (
    CountryFilter,
    CountryRead,
    CourseFilter,
    CourseRead,
    PathwayFilter,
    PathwayRead,
    UniversityFilter,
    UniversityRead,
)
from pathways_data.schemas.common import FilterModel, ReadModel, Result, SortSpec
from pathways_data.schemas.counseling import (
    CounselorFilter,
    CounselorRead,
    CounselorRequestDetail,
    CounselorRequestFilter,
    CounselorRequestRead,
)
from .base import BaseRepository

logger = logging.getLogger(__name__)

FilterInput = Union[FilterModel, Mapping[str, Any], None]


@dataclass(frozen=True)
class EntityShape:
    """
    Declarative description of how one entity is read.

    Attributes:
        model: ORM class queried
        read_model: pydantic model each row is converted to
        filter_model: the only filter struct accepted for this entity
        natural_order: default ascending sort column
        search_fields: columns matched case-insensitively by free-text search (OR-combined)
        options: loader options realising the fixed join shape
    """

    model: type
    read_model: Type[ReadModel]
    filter_model: Type[FilterModel]
    natural_order: str
    search_fields: Tuple[str, ...] = ()
    options: Tuple[Any, ...] = field(default_factory=tuple)


ENTITY_SHAPES: Dict[str, EntityShape] = {
    "country": EntityShape(Country, CountryRead, CountryFilter, "name", ("name",)),
    "university": EntityShape(
        University,
        UniversityRead,
        UniversityFilter,
        "name",
        ("name", "city", "state"),
        (joinedload(University.country),),
    ),
    "course": EntityShape(
        Course,
        CourseRead,
        CourseFilter,
        "program_name",
        ("program_name",),
        (joinedload(Course.university).joinedload(University.country),),
    ),
    "pathway": EntityShape(Pathway, PathwayRead, PathwayFilter, "name", ("name",)),
    "counselor": EntityShape(
        Counselor, CounselorRead, CounselorFilter, "display_name", ("full_name", "display_name")
    ),
    "counselor_request": EntityShape(
        CounselorRequest, CounselorRequestRead, CounselorRequestFilter, "requested_at"
    ),
    "counselor_request_detail": EntityShape(
        CounselorRequest,
        CounselorRequestDetail,
        CounselorRequestFilter,
        "requested_at",
        (),
        (joinedload(CounselorRequest.requested_counselor),),
    ),
}


class QueryBuilder:
    """
    Composes and runs read requests for the known entity shapes.

    ``build_select`` only composes a statement. ``rows``/``one`` execute it in a
    fresh session and raise on failure; ``fetch_all``/``fetch_one`` wrap those in
    the result envelope and never raise.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def shape(entity: str) -> EntityShape:
        try:
            return ENTITY_SHAPES[entity]
        except KeyError:
            raise ValidationFailedError(f"Unknown entity '{entity}'") from None

    # PUBLIC_INTERFACE
    def build_select(
        self,
        entity: str,
        *,
        search: Optional[str] = None,
        filters: FilterInput = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> Select:
        """
        Compose a SELECT for ``entity``.

        Parameters:
            search: free-text term matched as a case-insensitive substring on the
                    entity's searchable fields; blank means no search.
            filters: the entity's filter struct, or a mapping validated against it.
                     Fields that are None or blank are skipped.
            sort: column and direction; defaults to the natural order ascending.
        Raises:
            ValidationFailedError: unknown entity, wrong filter type or unknown sort field.
        """
        shape = self.shape(entity)
        model = shape.model
        stmt = select(model)
        if shape.options:
            stmt = stmt.options(*shape.options)

        if search is not None and not isinstance(search, str):
            raise ValidationFailedError(
                "Search term must be a string", details={"type": type(search).__name__}
            )
        term = (search or "").strip()
        if term:
            if not shape.search_fields:
                raise ValidationFailedError(f"Free-text search is not supported for '{entity}'")
            stmt = stmt.where(
                or_(*(getattr(model, name).icontains(term, autoescape=True) for name in shape.search_fields))
            )

        for name, value in self._filter_items(shape, filters):
            stmt = stmt.where(getattr(model, name) == value)

        sort = sort or SortSpec(field=shape.natural_order)
        column = self._column(shape, sort.field)
        stmt = stmt.order_by(column.desc() if sort.descending else column.asc(), model.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    @staticmethod
    def _filter_items(shape: EntityShape, filters: FilterInput) -> List[Tuple[str, Any]]:
        if filters is None:
            return []
        if isinstance(filters, Mapping):
            filters = shape.filter_model.model_validate(dict(filters))
        if not isinstance(filters, shape.filter_model):
            raise ValidationFailedError(
                f"Expected {shape.filter_model.__name__}, got {type(filters).__name__}"
            )
        items = []
        for name, value in filters:
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if isinstance(value, Enum):
                value = value.value
            items.append((name, value))
        return items

    @staticmethod
    def _column(shape: EntityShape, name: str):
        columns = sa_inspect(shape.model).columns
        if name not in columns:
            raise ValidationFailedError(
                f"Cannot sort {shape.model.__tablename__} by '{name}'",
                details={"allowed": sorted(columns.keys())},
            )
        return getattr(shape.model, name)

    async def rows(
        self,
        entity: str,
        *,
        search: Optional[str] = None,
        filters: FilterInput = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> List[ReadModel]:
        """Execute the composed query and return read models. Raises on failure."""
        shape = self.shape(entity)
        stmt = self.build_select(entity, search=search, filters=filters, sort=sort, limit=limit)
        async with self.session_factory() as session:
            repo = BaseRepository(session)
            result = await repo.scalars(stmt)
            return [shape.read_model.model_validate(row) for row in result.unique()]

    async def one(self, entity: str, filters: FilterInput) -> ReadModel:
        """Execute a query expected to match a single row. Raises NotFound/AmbiguousResult."""
        found = await self.rows(entity, filters=filters, limit=2)
        if not found:
            raise NotFoundError(f"{entity} not found", details=self._describe(filters))
        if len(found) > 1:
            raise AmbiguousResultError(
                f"Expected one {entity}, found several", details=self._describe(filters)
            )
        return found[0]

    # PUBLIC_INTERFACE
    @captures_errors("listing rows")
    async def fetch_all(
        self,
        entity: str,
        *,
        search: Optional[str] = None,
        filters: FilterInput = None,
        sort: Optional[SortSpec] = None,
    ) -> Result:
        """Envelope-returning variant of ``rows``."""
        return Result.success(await self.rows(entity, search=search, filters=filters, sort=sort))

    # PUBLIC_INTERFACE
    @captures_errors("fetching row")
    async def fetch_one(self, entity: str, filters: FilterInput) -> Result:
        """Envelope-returning variant of ``one``."""
        return Result.success(await self.one(entity, filters))

    @staticmethod
    def _describe(filters: FilterInput) -> Optional[dict]:
        if filters is None:
            return None
        if isinstance(filters, FilterModel):
            return filters.model_dump(mode="json", exclude_none=True)
        return dict(filters)
