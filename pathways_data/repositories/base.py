from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Executable
from sqlalchemy.engine import Result as SAResult, ScalarResult
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Thin wrapper over one AsyncSession.

    Repositories raise (SQLAlchemyError, IntegrityError, ...); turning failures
    into result envelopes is left to the service boundary
    (pathways_data.core.envelope).
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable) -> SAResult:
        return await self.session.execute(statement)

    async def scalars(self, statement: Executable) -> ScalarResult:
        """Execute and return the first column of each row."""
        return (await self.execute(statement)).scalars()

    async def scalar_one_or_none(self, statement: Executable) -> Optional[Any]:
        """Execute and return a single entity or None; more than one row raises MultipleResultsFound."""
        return (await self.execute(statement)).scalar_one_or_none()

    async def add(self, entity: Any) -> None:
        """Stage ``entity`` and flush, so constraint violations surface at the call site."""
        self.session.add(entity)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
