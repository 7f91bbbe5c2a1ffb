import asyncio
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.semesters import service as semester_service
from app.api.v1.semesters.schemas import SemesterCreate
from app.core.enums import UserRole
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.core.models import Section, Semester
from app.core.semester_cache import CurrentSemesterCache, current_semester_cache

from conftest import ADMIN_USER_ID, SECTION_A_USER_ID


def _payload(year: int = 2025, period: int = 2) -> SemesterCreate:
    return SemesterCreate(year=year, period=period, start_date=date(year, 7, 21), end_date=date(year, 11, 28))


@pytest.mark.asyncio
async def test_new_semester_replaces_current(db_session: AsyncSession, planning) -> None:
    # Prime the cache with the old current semester.
    assert await semester_service.get_current_semester_id(db_session) == planning.semester.id

    created = await semester_service.create_semester(db_session, _payload())

    assert created.is_current is True
    assert created.name == "2025-2"
    assert current_semester_cache.get() == created.id
    assert await semester_service.get_current_semester_id(db_session) == created.id
    current = await db_session.execute(select(Semester).where(Semester.is_current.is_(True)))
    assert [s.id for s in current.scalars().all()] == [created.id]
    previous = await db_session.get(Semester, planning.semester.id)
    assert previous.is_current is False


@pytest.mark.asyncio
async def test_new_semester_reopens_planning(db_session: AsyncSession, planning) -> None:
    planning.section_a.planning_closed = True
    planning.section_b.planning_closed = True
    await db_session.commit()

    await semester_service.create_semester(db_session, _payload())

    result = await db_session.execute(select(Section.planning_closed))
    assert set(result.scalars().all()) == {False}


@pytest.mark.asyncio
async def test_missing_fields_and_inverted_dates(db_session: AsyncSession) -> None:
    with pytest.raises(BadRequestError):
        await semester_service.create_semester(db_session, SemesterCreate(year=2025, period=1))
    with pytest.raises(BadRequestError):
        await semester_service.create_semester(
            db_session,
            SemesterCreate(year=2025, period=1, start_date=date(2025, 5, 1), end_date=date(2025, 1, 1)),
        )


@pytest.mark.asyncio
async def test_duplicate_year_period_is_conflict(db_session: AsyncSession, planning) -> None:
    with pytest.raises(ConflictError):
        await semester_service.create_semester(db_session, _payload(2025, 1))
    current = await semester_service.get_current_semester(db_session)
    assert current.id == planning.semester.id


@pytest.mark.asyncio
async def test_no_current_semester(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await semester_service.get_current_semester_id(db_session)


def test_cache_entry_expires() -> None:
    cache = CurrentSemesterCache(ttl_seconds=0)
    cache.set(5)
    assert cache.get() is None

    cache = CurrentSemesterCache(ttl_seconds=60)
    cache.set(5)
    assert cache.get() == 5
    cache.invalidate()
    assert cache.get() is None


def test_cache_drops_reads_older_than_last_write() -> None:
    cache = CurrentSemesterCache(ttl_seconds=60)
    seen = cache.generation
    cache.set(2)

    assert cache.set_if_unchanged(1, seen) is False
    assert cache.get() == 2
    assert cache.set_if_unchanged(3, cache.generation) is True
    assert cache.get() == 3


class _HeldSession:
    """Session wrapper whose execute() returns only once `release` is set."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.fetched = asyncio.Event()
        self.release = asyncio.Event()

    async def execute(self, *args, **kwargs):
        result = await self._session.execute(*args, **kwargs)
        self.fetched.set()
        await self.release.wait()
        return result


@pytest.mark.asyncio
async def test_slow_reader_does_not_override_new_semester(db_session: AsyncSession, planning) -> None:
    old_id = planning.semester.id
    held = _HeldSession(db_session)
    reader = asyncio.create_task(semester_service.get_current_semester_id(held))
    await held.fetched.wait()

    created = await semester_service.create_semester(db_session, _payload())
    held.release.set()

    assert await reader == old_id
    assert current_semester_cache.get() == created.id
    assert await semester_service.get_current_semester_id(db_session) == created.id


@pytest.mark.asyncio
async def test_semester_endpoints(client: AsyncClient, headers, planning) -> None:
    admin = headers(ADMIN_USER_ID, UserRole.ADMIN)
    body = {"year": 2025, "period": 2, "start_date": "2025-07-21", "end_date": "2025-11-28"}

    forbidden = await client.post("/api/v1/semesters", json=body, headers=headers(SECTION_A_USER_ID, UserRole.SECTION))
    assert forbidden.status_code == 403

    created = await client.post("/api/v1/semesters", json=body, headers=admin)
    assert created.status_code == 201
    new_id = created.json()["id"]

    duplicate = await client.post("/api/v1/semesters", json=body, headers=admin)
    assert duplicate.status_code == 409

    incomplete = await client.post("/api/v1/semesters", json={"year": 2026}, headers=admin)
    assert incomplete.status_code == 400

    current = await client.get("/api/v1/semesters/current", headers=admin)
    assert current.json()["id"] == new_id

    past = await client.get("/api/v1/semesters/past", headers=admin)
    assert [s["id"] for s in past.json()] == [planning.semester.id]

    everything = await client.get("/api/v1/semesters", headers=admin)
    assert [s["name"] for s in everything.json()] == ["2025-2", "2025-1"]

    by_period = await client.get("/api/v1/semesters/by-period", params={"year": 2025, "period": 1}, headers=admin)
    assert by_period.json()["id"] == planning.semester.id

    missing = await client.get("/api/v1/semesters/999", headers=admin)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/semesters")
    assert response.status_code == 401
