from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from pathways_data.schemas.common import FilterModel, ReadModel


class CountryRead(ReadModel):
    """Country read model."""
    id: int = Field(..., description="Country ID")
    name: str = Field(..., description="Country name")
    code: Optional[str] = Field(None, description="Country code")


class UniversitySummary(ReadModel):
    """University fields embedded in a course."""
    id: int = Field(..., description="University ID")
    name: str = Field(..., description="University name")
    city: Optional[str] = Field(None)
    state: Optional[str] = Field(None)
    country_id: int = Field(..., description="Country ID")
    country: Optional[CountryRead] = Field(None, description="Embedded country")


class UniversityRead(UniversitySummary):
    """University read model with its country embedded."""
    university_type: Optional[str] = Field(None)


class CourseRead(ReadModel):
    """Course read model with its university (and that university's country) embedded."""
    id: int = Field(..., description="Course ID")
    program_name: str = Field(..., description="Program name")
    degree_level: Optional[str] = Field(None)
    university_id: int = Field(..., description="University ID")
    duration: Optional[str] = Field(None)
    tuition_fee: Optional[Decimal] = Field(None)
    currency: Optional[str] = Field(None)
    university: Optional[UniversitySummary] = Field(None, description="Embedded university")


class PathwayRead(ReadModel):
    """Pathway read model."""
    id: int = Field(..., description="Pathway ID")
    name: str = Field(..., description="Pathway name")
    description: Optional[str] = Field(None)


class CountryFilter(FilterModel):
    id: Optional[int] = None
    code: Optional[str] = None


class UniversityFilter(FilterModel):
    id: Optional[int] = None
    country_id: Optional[int] = None
    university_type: Optional[str] = None
    state: Optional[str] = None


class CourseFilter(FilterModel):
    id: Optional[int] = None
    university_id: Optional[int] = None
    degree_level: Optional[str] = None


class PathwayFilter(FilterModel):
    id: Optional[int] = None


class CatalogStatistics(BaseModel):
    """Row counts per catalog collection; a failed collection counts as zero."""
    countries: int = Field(0, ge=0)
    universities: int = Field(0, ge=0)
    courses: int = Field(0, ge=0)
    pathways: int = Field(0, ge=0)
