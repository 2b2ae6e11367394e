"""
ORM models for the catalog (countries, universities, courses, pathways) and the
counselor-matching workflow (counselors, counselor requests).

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .catalog import (  # noqa: F401
    Country,
    University,
    Course,
    Pathway,
)
from .counseling import (  # noqa: F401
    Counselor,
    CounselorRequest,
)
