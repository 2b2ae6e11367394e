# tests/test_migrations.py
import uuid

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from pathways_data.db import run_migrations

# Sync tests: Alembic's online mode starts its own event loop.


@pytest.fixture
def migrated_db(tmp_path, monkeypatch):
    """Upgrade a fresh SQLite file to head; yields a sync engine on the same file."""
    path = tmp_path / "migrated.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{path}")
    run_migrations.main(["upgrade", "head"])
    engine = sa.create_engine(f"sqlite:///{path}")
    yield engine
    engine.dispose()


def _insert_request(conn, counselor_id, student_id, status="requested"):
    conn.execute(
        sa.text(
            "INSERT INTO counselor_requests "
            "(id, student_id, requested_counselor_id, status, requested_at, created_at, updated_at) "
            "VALUES (:id, :student, :counselor, :status, :ts, :ts, :ts)"
        ),
        {
            "id": uuid.uuid4().hex,
            "student": student_id,
            "counselor": counselor_id,
            "status": status,
            "ts": "2026-01-05 09:00:00.000000",
        },
    )


@pytest.fixture
def counselor_id(migrated_db):
    cid = uuid.uuid4().hex
    with migrated_db.begin() as conn:
        conn.execute(
            sa.text(
                "INSERT INTO counselors (id, full_name, display_name, email) "
                "VALUES (:id, 'Brian Chen', 'Brian C.', 'brian@example.org')"
            ),
            {"id": cid},
        )
    return cid


class TestMigrations:

    def test_upgrade_creates_every_table(self, migrated_db):
        tables = set(sa.inspect(migrated_db).get_table_names())

        assert {
            "countries",
            "universities",
            "courses",
            "pathways",
            "counselors",
            "counselor_requests",
        } <= tables

    def test_second_active_request_for_a_student_is_rejected(self, migrated_db, counselor_id):
        with migrated_db.begin() as conn:
            _insert_request(conn, counselor_id, "student-1")

        with pytest.raises(IntegrityError):
            with migrated_db.begin() as conn:
                _insert_request(conn, counselor_id, "student-1")

    def test_resolved_requests_do_not_count_as_active(self, migrated_db, counselor_id):
        with migrated_db.begin() as conn:
            _insert_request(conn, counselor_id, "student-1", status="declined")
            _insert_request(conn, counselor_id, "student-1", status="approved")
            _insert_request(conn, counselor_id, "student-1")

            count = conn.execute(sa.text("SELECT count(*) FROM counselor_requests")).scalar_one()

        assert count == 3

    def test_unknown_status_is_rejected(self, migrated_db, counselor_id):
        with pytest.raises(IntegrityError):
            with migrated_db.begin() as conn:
                _insert_request(conn, counselor_id, "student-1", status="archived")

    def test_downgrade_removes_the_schema(self, migrated_db):
        run_migrations.main(["downgrade", "base"])

        tables = set(sa.inspect(migrated_db).get_table_names())
        assert "counselor_requests" not in tables
        assert "countries" not in tables
