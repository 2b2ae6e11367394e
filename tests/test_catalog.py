# tests/test_catalog.py
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from pathways_data.core.errors import ErrorKind
from pathways_data.db.models import Country
from pathways_data.schemas.catalog import CourseFilter, UniversityFilter


@pytest.fixture
def fetch_calls(catalog, monkeypatch):
    """Records the entity of every ``fetch_all`` that reaches the store."""
    calls = []
    original = catalog.queries.fetch_all

    async def spy(entity, **kwargs):
        calls.append(entity)
        return await original(entity, **kwargs)

    monkeypatch.setattr(catalog.queries, "fetch_all", spy)
    return calls


async def _add_country(session_factory, name, code):
    async with session_factory() as session:
        session.add(Country(name=name, code=code))
        await session.commit()


@pytest.mark.asyncio
class TestReferenceLists:

    async def test_countries_are_read_once_and_served_from_cache(self, catalog, fetch_calls):
        first = await catalog.list_countries()
        second = await catalog.list_countries()

        assert [c.code for c in first.data] == ["CA", "GB", "US"]
        assert second.data is first.data
        assert fetch_calls == ["country"]

    async def test_concurrent_first_reads_share_one_store_read(self, catalog, fetch_calls):
        results = await asyncio.gather(*(catalog.list_pathways() for _ in range(5)))

        assert fetch_calls == ["pathway"]
        assert all(r.data is results[0].data for r in results)

    async def test_cached_list_hides_new_rows_until_invalidated(self, catalog, session_factory):
        await catalog.list_countries()
        await _add_country(session_factory, "Australia", "AU")

        stale = await catalog.list_countries()
        catalog.invalidate_reference_data()
        fresh = await catalog.list_countries()

        assert len(stale.data) == 3
        assert [c.code for c in fresh.data] == ["AU", "CA", "GB", "US"]

    async def test_cache_invalidate_all_forces_a_fresh_read(self, catalog, data_layer, fetch_calls):
        await catalog.list_countries()
        data_layer.cache.invalidate_all()
        await catalog.list_countries()

        assert fetch_calls == ["country", "country"]

    async def test_failed_load_is_reported_and_not_cached(self, catalog, monkeypatch):
        original = catalog.queries.rows
        failures = []

        async def flaky(entity, **kwargs):
            if not failures:
                failures.append(entity)
                raise OperationalError("SELECT", {}, Exception("connection refused"))
            return await original(entity, **kwargs)

        monkeypatch.setattr(catalog.queries, "rows", flaky)

        failed = await catalog.list_countries()
        recovered = await catalog.list_countries()

        assert failed.error.kind is ErrorKind.TRANSPORT_ERROR
        assert recovered.ok
        assert len(recovered.data) == 3


@pytest.mark.asyncio
class TestSingleRecords:

    async def test_get_country(self, catalog, seeded):
        result = await catalog.get_country(seeded["GB"])

        assert result.data.name == "United Kingdom"

    async def test_get_university_embeds_country(self, catalog, seeded):
        result = await catalog.get_university(seeded["anglia"])

        assert result.data.country.code == "GB"
        assert result.data.university_type == "public"

    async def test_get_course_embeds_university_chain(self, catalog, seeded):
        result = await catalog.get_course(seeded["mit_cs"])

        assert result.data.tuition_fee == Decimal("58000.00")
        assert result.data.university.name == "Massachusetts Institute of Technology"
        assert result.data.university.country.name == "United States"

    async def test_get_pathway(self, catalog):
        pathways = await catalog.list_pathways()
        target = pathways.data[0]

        result = await catalog.get_pathway(target.id)

        assert result.data == target

    async def test_missing_id_is_not_found(self, catalog):
        result = await catalog.get_university(10_000)

        assert result.data is None
        assert result.error.kind is ErrorKind.NOT_FOUND

    async def test_absent_id_is_a_validation_error(self, catalog):
        result = await catalog.get_course(None)

        assert result.error.kind is ErrorKind.VALIDATION_ERROR


@pytest.mark.asyncio
class TestFilteringAndSearch:

    async def test_list_universities_by_country(self, catalog, seeded):
        result = await catalog.list_universities(UniversityFilter(country_id=seeded["US"]))

        assert [u.name for u in result.data] == ["Massachusetts Institute of Technology", "Stanford University"]

    async def test_list_universities_accepts_a_mapping(self, catalog):
        result = await catalog.list_universities({"state": "Cambridgeshire"})

        assert [u.name for u in result.data] == ["Anglia Ruskin University", "University of Cambridge"]

    async def test_list_courses_by_university_and_degree(self, catalog, seeded):
        result = await catalog.list_courses(CourseFilter(university_id=seeded["cambridge"], degree_level="master"))

        assert [c.program_name for c in result.data] == ["Mathematics"]

    async def test_search_universities_with_empty_filters(self, catalog):
        result = await catalog.search_universities("cambridge", {})

        assert len(result.data) == 3

    async def test_search_courses_with_filter(self, catalog):
        result = await catalog.search_courses("computer", {"degree_level": "master"})

        assert len(result.data) == 1
        assert result.data[0].university.name == "Massachusetts Institute of Technology"

    async def test_search_without_term_lists_everything(self, catalog):
        result = await catalog.search_courses(None)

        assert len(result.data) == 5

    async def test_blank_id_filter_matches_like_no_filter(self, catalog):
        blank = await catalog.search_universities("cambridge", {"country_id": ""})
        none = await catalog.search_universities("cambridge", {})

        assert blank.ok
        assert blank.data == none.data

    async def test_non_string_search_term(self, catalog):
        result = await catalog.search_courses(42)

        assert result.data is None
        assert result.error.kind is ErrorKind.VALIDATION_ERROR

    async def test_unknown_filter_key(self, catalog):
        result = await catalog.list_courses({"campus": "north"})

        assert result.error.kind is ErrorKind.VALIDATION_ERROR


@pytest.mark.asyncio
class TestStatistics:

    async def test_counts_every_collection(self, catalog):
        result = await catalog.get_statistics()

        assert result.ok
        assert result.data.model_dump() == {"countries": 3, "universities": 5, "courses": 5, "pathways": 3}

    async def test_failed_branch_counts_as_zero(self, catalog, monkeypatch):
        original = catalog.queries.rows

        async def courses_down(entity, **kwargs):
            if entity == "course":
                raise OperationalError("SELECT", {}, Exception("timeout"))
            return await original(entity, **kwargs)

        monkeypatch.setattr(catalog.queries, "rows", courses_down)

        result = await catalog.get_statistics()

        assert result.ok
        assert result.data.courses == 0
        assert result.data.universities == 5
        assert result.data.countries == 3

    async def test_statistics_follow_cache_invalidation(self, catalog, session_factory):
        await catalog.get_statistics()
        await _add_country(session_factory, "Ireland", "IE")

        cached = await catalog.get_statistics()
        catalog.invalidate_reference_data()
        fresh = await catalog.get_statistics()

        assert cached.data.countries == 3
        assert fresh.data.countries == 4
