"""
Database package initializer exposing key public interfaces for configuration,
engine/session management and schema bootstrap.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    build_engine,
    build_session_factory,
    create_schema,
    session_scope,
)

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "build_engine",
    "build_session_factory",
    "create_schema",
    "session_scope",
    "models",
]
