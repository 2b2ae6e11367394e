from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    Uuid,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pathways_data.db.base import Base, TimestampMixin, UUIDPkMixin

REQUEST_STATUSES = ("requested", "approved", "declined")

# At most one active request per student. Enforced by the store so that two
# concurrent create_request calls cannot both insert.
ACTIVE_REQUEST_INDEX = "uq_counselor_requests_active_student"
ACTIVE_REQUEST_PREDICATE = "status = 'requested'"


class Counselor(UUIDPkMixin, Base):
    """Counselor profile visible to students when available."""
    __tablename__ = "counselors"

    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    counselor_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    years_experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    specializations: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    hourly_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())


class CounselorRequest(UUIDPkMixin, TimestampMixin, Base):
    """A student's request to be matched with a counselor."""
    __tablename__ = "counselor_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('requested', 'approved', 'declined')", name="status_valid"
        ),
        Index(
            ACTIVE_REQUEST_INDEX,
            "student_id",
            unique=True,
            postgresql_where=text(ACTIVE_REQUEST_PREDICATE),
            sqlite_where=text(ACTIVE_REQUEST_PREDICATE),
        ),
        Index("ix_counselor_requests_counselor_status", "counselor_id", "status"),
    )

    student_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    requested_counselor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("counselors.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    counselor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("counselors.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default="requested", server_default="requested")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    requested_counselor: Mapped[Counselor] = relationship(
        foreign_keys=[requested_counselor_id], lazy="raise"
    )
