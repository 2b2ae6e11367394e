"""
Public Pydantic schemas returned by services and used by tests.

Schemas are grouped by domain module (catalog, counseling) and also include the
common result envelope, filter and sort primitives.
"""

from .common import Result, ServiceError, SortSpec  # noqa: F401
