from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pathways_data.db.base import Base, IntPkMixin


class Country(IntPkMixin, Base):
    """Country reference row."""
    __tablename__ = "countries"
    __table_args__ = (
        CheckConstraint("length(name) > 0", name="name_not_empty"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # ISO-style code, e.g. GB


class University(IntPkMixin, Base):
    """University located in a country."""
    __tablename__ = "universities"

    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    city: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # state / province
    country_id: Mapped[int] = mapped_column(ForeignKey("countries.id", ondelete="RESTRICT"), nullable=False, index=True)
    university_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # public/private/etc.

    # Loaded only through declared join shapes; lazy access is an error under asyncio.
    country: Mapped[Country] = relationship(lazy="raise")


class Course(IntPkMixin, Base):
    """Program offered by a university."""
    __tablename__ = "courses"

    program_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    degree_level: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # bachelor/master/...
    university_id: Mapped[int] = mapped_column(ForeignKey("universities.id", ondelete="CASCADE"), nullable=False, index=True)
    duration: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tuition_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    university: Mapped[University] = relationship(lazy="raise")


class Pathway(IntPkMixin, Base):
    """Standalone pathway reference row."""
    __tablename__ = "pathways"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
