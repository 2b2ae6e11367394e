from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pathways_data.core.errors import ErrorKind

T = TypeVar("T")


class ReadModel(BaseModel):
    """Base for immutable snapshots built from ORM rows."""
    model_config = ConfigDict(from_attributes=True, frozen=True)


class FilterModel(BaseModel):
    """
    Base for per-entity filter structs.

    Unknown keys are rejected, and fields left as None or "" place no constraint on the query.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _blank_means_unset(cls, data: Any) -> Any:
        # Blank strings become None before int/UUID parsing sees them.
        if isinstance(data, Mapping):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data


class SortSpec(BaseModel):
    """Server-side ordering on a single column."""
    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1, description="Column to order by")
    descending: bool = Field(False, description="Order descending instead of ascending")


class ServiceError(BaseModel):
    """Structured error description."""
    kind: ErrorKind = Field(..., description="Machine-readable error kind")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Optional error details (e.g., validation issues)")


# PUBLIC_INTERFACE
class Result(BaseModel, Generic[T]):
    """
    Envelope returned by every public operation.

    Exactly one of ``data`` and ``error`` is meaningful: ``error`` is None on success.
    """
    data: Optional[T] = Field(default=None, description="Payload on success")
    error: Optional[ServiceError] = Field(default=None, description="Failure description")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> "Result":
        return cls(data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, details: Optional[Any] = None) -> "Result":
        return cls(error=ServiceError(kind=kind, message=message, details=details))


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (drivers without timezone support return naive values)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
