"""Create catalog tables: countries, universities, courses, pathways.

Tables:
- countries
- universities (FK countries)
- courses (FK universities)
- pathways
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1d7e2a9b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "countries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=True),
        sa.CheckConstraint("length(name) > 0", name=op.f("ck_countries_name_not_empty")),
        sa.Index("ix_countries_name", "name"),
    )

    op.create_table(
        "universities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("country_id", sa.Integer(), nullable=False),
        sa.Column("university_type", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"], ondelete="RESTRICT"),
        sa.Index("ix_universities_country_id", "country_id"),
        sa.Index("ix_universities_name", "name"),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("program_name", sa.Text(), nullable=False),
        sa.Column("degree_level", sa.Text(), nullable=True),
        sa.Column("university_id", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Text(), nullable=True),
        sa.Column("tuition_fee", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
        sa.Index("ix_courses_university_id", "university_id"),
        sa.Index("ix_courses_program_name", "program_name"),
    )

    op.create_table(
        "pathways",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("pathways")
    op.drop_table("courses")
    op.drop_table("universities")
    op.drop_table("countries")
