from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pathways_data.schemas.common import FilterModel, ReadModel, as_utc


class RequestStatus(str, Enum):
    """Counselor request lifecycle states."""
    REQUESTED = "requested"
    APPROVED = "approved"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.REQUESTED


class CounselorSummary(ReadModel):
    """Counselor fields embedded in administrative request listings."""
    id: UUID = Field(..., description="Counselor ID")
    full_name: str = Field(..., description="Full name")
    display_name: str = Field(..., description="Name shown to students")
    email: str = Field(..., description="Contact email")
    counselor_type: Optional[str] = Field(None)
    specializations: Optional[List[str]] = Field(None)
    hourly_rate: Optional[Decimal] = Field(None)
    currency: Optional[str] = Field(None)
    average_rating: Optional[float] = Field(None)
    is_available: bool = Field(..., description="Visible in student listings")


class CounselorRead(CounselorSummary):
    """Full counselor profile."""
    bio: Optional[str] = Field(None)
    years_experience: Optional[int] = Field(None)
    total_reviews: int = Field(0)


class CounselorRequestRead(ReadModel):
    """Counselor request read model."""
    id: UUID = Field(..., description="Request ID")
    student_id: str = Field(..., description="Requesting student's user id")
    requested_counselor_id: UUID = Field(..., description="Counselor the student asked for")
    counselor_id: Optional[UUID] = Field(None, description="Counselor assigned on approval")
    status: RequestStatus = Field(..., description="Lifecycle state")
    notes: Optional[str] = Field(None, description="Student's note")
    admin_notes: Optional[str] = Field(None)
    requested_at: datetime = Field(..., description="When the student made the request")
    approved_at: Optional[datetime] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    @field_validator("requested_at", "approved_at", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class CounselorRequestDetail(CounselorRequestRead):
    """Administrative view of a request with the requested counselor embedded."""
    requested_counselor: Optional[CounselorSummary] = Field(None)


class CounselorRequestCreate(BaseModel):
    """Create counselor request payload."""
    model_config = ConfigDict(str_strip_whitespace=True)

    student_id: str = Field(..., min_length=1, description="Requesting student's user id")
    requested_counselor_id: UUID = Field(..., description="Counselor the student asks for")
    notes: Optional[str] = Field(None)


class StatusUpdate(BaseModel):
    """Administrative decision on an active request."""
    new_status: RequestStatus = Field(..., description="approved or declined")
    admin_notes: Optional[str] = Field(None)
    counselor_id: Optional[UUID] = Field(None, description="Counselor to assign on approval")

    @field_validator("new_status")
    @classmethod
    def _decision_only(cls, v: RequestStatus) -> RequestStatus:
        if not v.is_terminal:
            raise ValueError("new_status must be 'approved' or 'declined'")
        return v


class CounselorFilter(FilterModel):
    id: Optional[UUID] = None
    is_available: Optional[bool] = None
    counselor_type: Optional[str] = None


class CounselorRequestFilter(FilterModel):
    id: Optional[UUID] = None
    student_id: Optional[str] = None
    requested_counselor_id: Optional[UUID] = None
    counselor_id: Optional[UUID] = None
    status: Optional[RequestStatus] = None
