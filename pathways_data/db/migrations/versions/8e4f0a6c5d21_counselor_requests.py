"""Create counselors and counselor_requests.

The partial unique index uq_counselor_requests_active_student allows at most one
request in status 'requested' per student; create_request relies on it to
reject concurrent duplicate inserts.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e4f0a6c5d21"
down_revision: Union[str, None] = "3c1d7e2a9b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_PREDICATE = sa.text("status = 'requested'")


def upgrade() -> None:
    op.create_table(
        "counselors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("counselor_type", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("years_experience", sa.Integer(), nullable=True),
        sa.Column("specializations", sa.JSON(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.Text(), nullable=True),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Index("ix_counselors_display_name", "display_name"),
    )

    op.create_table(
        "counselor_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("student_id", sa.Text(), nullable=False),
        sa.Column("requested_counselor_id", sa.Uuid(), nullable=False),
        sa.Column("counselor_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="requested"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["requested_counselor_id"], ["counselors.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["counselor_id"], ["counselors.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('requested', 'approved', 'declined')",
            name=op.f("ck_counselor_requests_status_valid"),
        ),
        sa.Index("ix_counselor_requests_student_id", "student_id"),
        sa.Index("ix_counselor_requests_requested_counselor_id", "requested_counselor_id"),
        sa.Index("ix_counselor_requests_counselor_status", "counselor_id", "status"),
    )

    op.create_index(
        "uq_counselor_requests_active_student",
        "counselor_requests",
        ["student_id"],
        unique=True,
        postgresql_where=ACTIVE_PREDICATE,
        sqlite_where=ACTIVE_PREDICATE,
    )


def downgrade() -> None:
    op.drop_index("uq_counselor_requests_active_student", table_name="counselor_requests")
    op.drop_table("counselor_requests")
    op.drop_table("counselors")
