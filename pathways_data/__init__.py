"""
Data-access layer for the educational-pathways catalog and the counselor-matching workflow.
"""

from .client import PathwaysDataLayer
from .core.auth import AuthSession, Role
from .core.errors import ErrorKind
from .schemas.common import Result, ServiceError

__all__ = [
    "PathwaysDataLayer",
    "AuthSession",
    "Role",
    "ErrorKind",
    "Result",
    "ServiceError",
]
