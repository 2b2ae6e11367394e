# tests/conftest.py
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from pathways_data.client import PathwaysDataLayer
from pathways_data.core.auth import AuthSession, Role
from pathways_data.core.settings import AppSettings
from pathways_data.db.models import Counselor, Country, Course, Pathway, University
from pathways_data.db.session import build_session_factory, create_schema


class FakeClock:
    """Deterministic UTC clock; each reading advances by ``step``."""

    def __init__(self, start=datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc), step=timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh file-backed SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pathways.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def seeded(session_factory):
    """
    Seeds three countries, five universities, five courses, three pathways and
    three counselors (one unavailable). Returns the ids keyed by short names.
    """
    ids = {}
    async with session_factory() as session:
        countries = {
            "US": Country(name="United States", code="US"),
            "GB": Country(name="United Kingdom", code="GB"),
            "CA": Country(name="Canada", code="CA"),
        }
        session.add_all(countries.values())
        await session.flush()
        ids.update({code: c.id for code, c in countries.items()})

        universities = {
            "cambridge": University(
                name="University of Cambridge", city="Cambridge", state="Cambridgeshire",
                country_id=ids["GB"], university_type="public",
            ),
            "mit": University(
                name="Massachusetts Institute of Technology", city="Cambridge", state="Massachusetts",
                country_id=ids["US"], university_type="private",
            ),
            "stanford": University(
                name="Stanford University", city="Stanford", state="California",
                country_id=ids["US"], university_type="private",
            ),
            "toronto": University(
                name="University of Toronto", city="Toronto", state="Ontario",
                country_id=ids["CA"], university_type="public",
            ),
            "anglia": University(
                name="Anglia Ruskin University", city="Peterborough", state="Cambridgeshire",
                country_id=ids["GB"], university_type="public",
            ),
        }
        session.add_all(universities.values())
        await session.flush()
        ids.update({key: u.id for key, u in universities.items()})

        courses = {
            "cam_cs": Course(program_name="Computer Science", degree_level="bachelor", university_id=ids["cambridge"]),
            "cam_maths": Course(program_name="Mathematics", degree_level="master", university_id=ids["cambridge"]),
            "mit_cs": Course(
                program_name="Computer Science", degree_level="master", university_id=ids["mit"],
                tuition_fee=Decimal("58000.00"), currency="USD",
            ),
            "stanford_mba": Course(program_name="Business Administration", degree_level="master", university_id=ids["stanford"]),
            "toronto_ds": Course(program_name="Data Science", degree_level="master", university_id=ids["toronto"]),
        }
        session.add_all(courses.values())
        await session.flush()
        ids.update({key: c.id for key, c in courses.items()})

        session.add_all(
            [
                Pathway(name="Foundation Year"),
                Pathway(name="Direct Entry"),
                Pathway(name="Pre-Master's"),
            ]
        )

        counselors = {
            "brian": Counselor(
                id=uuid.uuid4(), full_name="Brian Chen", display_name="Brian C.", email="brian@example.org",
                counselor_type="admissions", specializations=["UK", "Canada"], is_available=True,
            ),
            "alice": Counselor(
                id=uuid.uuid4(), full_name="Alice Morgan", display_name="Alice M.", email="alice@example.org",
                counselor_type="visa", specializations=["US"], average_rating=4.8, is_available=True,
            ),
            "carla": Counselor(
                id=uuid.uuid4(), full_name="Carla Diaz", display_name="Carla D.", email="carla@example.org",
                is_available=False,
            ),
        }
        session.add_all(counselors.values())
        await session.commit()
        ids.update({key: c.id for key, c in counselors.items()})
    return ids


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_settings():
    return AppSettings(REQUEST_CREATE_MAX_ATTEMPTS=3, REFERENCE_CACHE_TTL_SECONDS=None)


@pytest_asyncio.fixture
async def data_layer(engine, seeded, app_settings, clock):
    layer = PathwaysDataLayer(engine, settings=app_settings, clock=clock)
    yield layer
    await layer.close()


@pytest.fixture
def catalog(data_layer):
    return data_layer.catalog


@pytest.fixture
def counseling(data_layer):
    return data_layer.counseling


@pytest.fixture
def admin():
    return AuthSession(user_id="admin-1", role=Role.ADMINISTRATOR)


@pytest.fixture
def student_actor():
    return AuthSession(user_id="student-1", role=Role.STUDENT)
