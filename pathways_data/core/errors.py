from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Machine-readable failure categories carried by the result envelope."""

    NOT_FOUND = "not_found"
    AMBIGUOUS_RESULT = "ambiguous_result"
    DUPLICATE_REQUEST = "duplicate_request"
    INVALID_TRANSITION = "invalid_transition"
    TRANSPORT_ERROR = "transport_error"
    VALIDATION_ERROR = "validation_error"
    FORBIDDEN = "forbidden"


class DataAccessError(Exception):
    """
    Base class for failures raised inside the data-access layer.

    These never leave a public service method: the boundary converts them into a
    ``Result`` whose ``error.kind`` is the class' ``kind``.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DataAccessError):
    kind = ErrorKind.NOT_FOUND


class AmbiguousResultError(DataAccessError):
    kind = ErrorKind.AMBIGUOUS_RESULT


class DuplicateRequestError(DataAccessError):
    kind = ErrorKind.DUPLICATE_REQUEST


class InvalidTransitionError(DataAccessError):
    kind = ErrorKind.INVALID_TRANSITION


class ValidationFailedError(DataAccessError):
    kind = ErrorKind.VALIDATION_ERROR


class ForbiddenError(DataAccessError):
    kind = ErrorKind.FORBIDDEN
