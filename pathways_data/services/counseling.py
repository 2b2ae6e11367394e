from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pathways_data.core.auth import AuthSession, Role, require_roles
from pathways_data.core.envelope import captures_errors
from pathways_data.core.errors import (
    DuplicateRequestError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from pathways_data.core.logging import logging_context
from pathways_data.core.settings import AppSettings, get_app_settings
from pathways_data.db.session import session_scope
from pathways_data.repositories.counseling import CounselorRepository, CounselorRequestRepository
from pathways_data.repositories.query import QueryBuilder
from pathways_data.schemas.common import Result, SortSpec, as_utc
from pathways_data.schemas.counseling import (
    CounselorFilter,
    CounselorRequestCreate,
    CounselorRequestFilter,
    CounselorRequestRead,
    RequestStatus,
    StatusUpdate,
)
from pathways_data.services.base import BaseService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _require(value, label: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailedError(f"{label} is required")


class CounselorMatchingService(BaseService):
    """
    Counselor listings and the counselor-request workflow.

    Request lifecycle: requested -> approved | declined. Both outcomes are
    terminal; resolved requests are kept for history and never deleted.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queries: Optional[QueryBuilder] = None,
        settings: Optional[AppSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(session_factory, queries)
        self.settings = settings or get_app_settings()
        self._clock = clock or utcnow

    def _now(self) -> datetime:
        return as_utc(self._clock())

    # PUBLIC_INTERFACE
    @captures_errors("listing counselors")
    async def list_counselors(self, available_only: bool = True) -> Result:
        """Counselors ordered by display name; unavailable ones are hidden by default."""
        filters = CounselorFilter(is_available=True) if available_only else None
        return await self.queries.fetch_all("counselor", filters=filters)

    # PUBLIC_INTERFACE
    @captures_errors("fetching counselor")
    async def get_counselor(self, counselor_id: UUID) -> Result:
        _require(counselor_id, "counselor_id")
        return await self.queries.fetch_one("counselor", CounselorFilter(id=counselor_id))

    # PUBLIC_INTERFACE
    @captures_errors("creating counselor request")
    async def create_request(
        self,
        student_id: str,
        requested_counselor_id: UUID,
        notes: Optional[str] = None,
    ) -> Result:
        """
        Open a request for a student.

        The duplicate check and the insert form one compare-and-insert: the
        store's partial unique index on active requests rejects a racing
        insert, and the rejected caller re-runs the check, which then reports
        DuplicateRequest.

        Returns:
            Result with the created CounselorRequestRead, or an error of kind
            validation_error, not_found, duplicate_request or transport_error.
        """
        payload = CounselorRequestCreate(
            student_id=student_id, requested_counselor_id=requested_counselor_id, notes=notes
        )
        attempts = self.settings.REQUEST_CREATE_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            async with session_scope(self.session_factory) as session:
                counselors = CounselorRepository(session)
                requests = CounselorRequestRepository(session)

                if await counselors.get_counselor(payload.requested_counselor_id) is None:
                    raise NotFoundError(
                        "Counselor not found",
                        details={"counselor_id": str(payload.requested_counselor_id)},
                    )
                active = await requests.find_active_for_student(payload.student_id)
                if active is not None:
                    raise DuplicateRequestError(
                        "Student already has an active counselor request",
                        details={"request_id": str(active.id)},
                    )
                try:
                    created = await requests.insert_request(
                        student_id=payload.student_id,
                        requested_counselor_id=payload.requested_counselor_id,
                        notes=payload.notes,
                        now=self._now(),
                    )
                except IntegrityError as exc:
                    await requests.rollback()
                    logger.warning(
                        "Integrity conflict inserting request for student %s (attempt %d/%d): %s; re-checking",
                        payload.student_id,
                        attempt,
                        attempts,
                        exc.orig,
                    )
                    continue

            logger.info(
                "Counselor request %s opened by student %s for counselor %s",
                created.id,
                created.student_id,
                created.requested_counselor_id,
            )
            return Result.success(CounselorRequestRead.model_validate(created))

        raise DuplicateRequestError(
            "Student already has an active counselor request",
            details={"attempts": attempts},
        )

    # PUBLIC_INTERFACE
    @captures_errors("listing student requests")
    async def list_requests_for_student(self, student_id: str) -> Result:
        """A student's requests, newest first."""
        _require(student_id, "student_id")
        return await self.queries.fetch_all(
            "counselor_request",
            filters=CounselorRequestFilter(student_id=student_id),
            sort=SortSpec(field="created_at", descending=True),
        )

    # PUBLIC_INTERFACE
    @captures_errors("listing counselor requests")
    async def list_requests_for_counselor(self, counselor_id: UUID) -> Result:
        """Requests naming ``counselor_id`` as the requested counselor, newest first."""
        _require(counselor_id, "counselor_id")
        return await self.queries.fetch_all(
            "counselor_request",
            filters=CounselorRequestFilter(requested_counselor_id=counselor_id),
            sort=SortSpec(field="created_at", descending=True),
        )

    # PUBLIC_INTERFACE
    @captures_errors("listing all requests")
    async def list_all_requests(
        self, status_filter: Union[RequestStatus, str, None] = None
    ) -> Result:
        """Administrative view with the requested counselor embedded, newest request first."""
        return await self.queries.fetch_all(
            "counselor_request_detail",
            filters=CounselorRequestFilter(status=status_filter or None),
            sort=SortSpec(field="requested_at", descending=True),
        )

    # PUBLIC_INTERFACE
    @captures_errors("updating request status")
    async def update_status(
        self,
        actor: AuthSession,
        request_id: UUID,
        new_status: Union[RequestStatus, str],
        admin_notes: Optional[str] = None,
        counselor_id: Optional[UUID] = None,
    ) -> Result:
        """
        Resolve an active request as approved or declined.

        Parameters:
            actor: must hold the administrator role
            request_id: request to resolve
            new_status: "approved" or "declined"
            admin_notes: stored when given
            counselor_id: counselor to assign on approval; defaults to the
                          counselor already assigned, else the requested one
        Returns:
            Result with the updated CounselorRequestRead. Checks run before any
            write: forbidden, validation_error, not_found, invalid_transition.
        """
        require_roles(actor, Role.ADMINISTRATOR)
        with logging_context(actor=actor):
            update = StatusUpdate(new_status=new_status, admin_notes=admin_notes, counselor_id=counselor_id)
            _require(request_id, "request_id")

            async with session_scope(self.session_factory) as session:
                requests = CounselorRequestRepository(session)
                current = await requests.get_request(request_id, for_update=True)
                if current is None:
                    raise NotFoundError("Counselor request not found", details={"request_id": str(request_id)})

                status = RequestStatus(current.status)
                if status.is_terminal:
                    raise InvalidTransitionError(
                        f"Cannot move a {status.value} request to {update.new_status.value}",
                        details={"from": status.value, "to": update.new_status.value},
                    )

                now = self._now()
                # updated_at never moves backwards, even if the clock does.
                updated_at = max(now, as_utc(current.updated_at))
                values = {"status": update.new_status.value, "updated_at": updated_at}
                if update.admin_notes:
                    values["admin_notes"] = update.admin_notes
                if update.new_status is RequestStatus.APPROVED:
                    assigned = update.counselor_id or current.counselor_id or current.requested_counselor_id
                    if update.counselor_id is not None:
                        if await CounselorRepository(session).get_counselor(update.counselor_id) is None:
                            raise NotFoundError(
                                "Counselor not found", details={"counselor_id": str(update.counselor_id)}
                            )
                    values["approved_at"] = updated_at
                    values["counselor_id"] = assigned

                if not await requests.resolve_request(request_id, values):
                    raise InvalidTransitionError(
                        "Request was resolved concurrently",
                        details={"to": update.new_status.value},
                    )
                updated = await requests.get_request(request_id, refresh=True)

            logger.info("Counselor request %s %s", request_id, update.new_status.value)
            return Result.success(CounselorRequestRead.model_validate(updated))

    # PUBLIC_INTERFACE
    @captures_errors("listing active students")
    async def list_active_students_for_counselor(self, counselor_id: UUID) -> Result:
        """Approved requests assigned to ``counselor_id``, most recently approved first."""
        _require(counselor_id, "counselor_id")
        return await self.queries.fetch_all(
            "counselor_request",
            filters=CounselorRequestFilter(counselor_id=counselor_id, status=RequestStatus.APPROVED),
            sort=SortSpec(field="approved_at", descending=True),
        )
