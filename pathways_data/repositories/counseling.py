from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pathways_data.db.models.counseling import Counselor, CounselorRequest
from .base import BaseRepository


class CounselorRepository(BaseRepository):
    """Repository for counselor profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_counselor(self, counselor_id: UUID) -> Optional[Counselor]:
        stmt = select(Counselor).where(Counselor.id == counselor_id)
        return await self.scalar_one_or_none(stmt)


class CounselorRequestRepository(BaseRepository):
    """Write-side repository for counselor requests. Rows are never deleted."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_request(
        self, request_id: UUID, *, for_update: bool = False, refresh: bool = False
    ) -> Optional[CounselorRequest]:
        stmt = select(CounselorRequest).where(CounselorRequest.id == request_id)
        if for_update:
            stmt = stmt.with_for_update()
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return await self.scalar_one_or_none(stmt)

    async def find_active_for_student(self, student_id: str) -> Optional[CounselorRequest]:
        stmt = (
            select(CounselorRequest)
            .where(CounselorRequest.student_id == student_id)
            .where(CounselorRequest.status == "requested")
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def insert_request(
        self,
        *,
        student_id: str,
        requested_counselor_id: UUID,
        notes: Optional[str],
        now: datetime,
    ) -> CounselorRequest:
        """
        Insert an active request and commit.

        Raises:
            IntegrityError: another active request for the student exists
                            (partial unique index on student_id).
        """
        row = CounselorRequest(
            student_id=student_id,
            requested_counselor_id=requested_counselor_id,
            status="requested",
            notes=notes,
            requested_at=now,
            created_at=now,
            updated_at=now,
        )
        await self.add(row)
        await self.commit()
        return row

    async def resolve_request(self, request_id: UUID, values: Dict[str, Any]) -> bool:
        """
        Apply ``values`` only while the request is still active, then commit.

        Returns:
            False when the request was no longer in the requested state.
        """
        stmt = (
            update(CounselorRequest)
            .where(CounselorRequest.id == request_id)
            .where(CounselorRequest.status == "requested")
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        await self.commit()
        return result.rowcount == 1
