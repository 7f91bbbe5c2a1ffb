from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.duplication import service as duplication_service
from app.auth.schemas import AdminActor, SectionActor
from app.core.enums import UserRole
from app.core.exceptions import BadRequestError, NotFoundError, ServerError
from app.core.models import AcademicClass, ClassSchedule, Semester

from conftest import ADMIN_USER_ID, SECTION_A_USER_ID


async def _semester(db: AsyncSession, year: int, period: int) -> Semester:
    semester = Semester(
        year=year, period=period, start_date=date(year, 7, 20), end_date=date(year, 11, 30), is_current=False
    )
    db.add(semester)
    await db.commit()
    return semester


async def _count(db: AsyncSession, model, *criteria) -> int:
    return (await db.execute(select(func.count()).select_from(model).where(*criteria))).scalar_one()


async def _schedule_count(db: AsyncSession, semester_id: int) -> int:
    stmt = (
        select(func.count(ClassSchedule.id))
        .join(AcademicClass, AcademicClass.id == ClassSchedule.class_id)
        .where(AcademicClass.semester_id == semester_id)
    )
    return (await db.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_duplicate_all_preserves_counts_and_attributes(db_session: AsyncSession, planning, make_class) -> None:
    source = planning.semester
    target = await _semester(db_session, 2025, 2)
    await make_class(planning.course_a.id, source.id, [(7, "MONDAY", "08:00", "10:00"), (None, "WEDNESDAY", "08:00", "10:00")])
    await make_class(planning.course_b.id, source.id, [(3, "FRIDAY", "14:00", "16:00")], capacity=45)
    await make_class(planning.course_b.id, source.id)

    result = await duplication_service.duplicate_all(db_session, AdminActor(), source.id, target.id)

    assert len(result.classes) == 3
    assert await _count(db_session, AcademicClass, AcademicClass.semester_id == target.id) == 3
    assert await _schedule_count(db_session, target.id) == await _schedule_count(db_session, source.id) == 3
    assert all(c.semester_id == target.id for c in result.classes)
    assert sorted((c.course_id, c.capacity, c.section, len(c.schedules)) for c in result.classes) == sorted(
        [
            (planning.course_a.id, 30, 1, 2),
            (planning.course_b.id, 45, 1, 1),
            (planning.course_b.id, 30, 1, 0),
        ]
    )


@pytest.mark.asyncio
async def test_duplicate_twice_creates_two_copies(db_session: AsyncSession, planning, make_class) -> None:
    target = await _semester(db_session, 2025, 2)
    await make_class(planning.course_a.id, planning.semester.id, [(7, "MONDAY", "08:00", "10:00")])

    await duplication_service.duplicate_all(db_session, AdminActor(), planning.semester.id, target.id)
    await duplication_service.duplicate_all(db_session, AdminActor(), planning.semester.id, target.id)

    assert await _count(db_session, AcademicClass, AcademicClass.semester_id == target.id) == 2


@pytest.mark.asyncio
async def test_section_duplicates_only_its_classes(db_session: AsyncSession, planning, make_class) -> None:
    target = await _semester(db_session, 2025, 2)
    await make_class(planning.course_a.id, planning.semester.id)
    await make_class(planning.course_b.id, planning.semester.id)

    result = await duplication_service.duplicate_all(
        db_session, SectionActor(section_id=planning.section_a.id), planning.semester.id, target.id
    )
    assert [c.course_id for c in result.classes] == [planning.course_a.id]


@pytest.mark.asyncio
async def test_invalid_semesters(db_session: AsyncSession, planning) -> None:
    with pytest.raises(BadRequestError):
        await duplication_service.duplicate_all(db_session, AdminActor(), planning.semester.id, planning.semester.id)
    with pytest.raises(NotFoundError):
        await duplication_service.duplicate_all(db_session, AdminActor(), planning.semester.id, 999)
    with pytest.raises(NotFoundError):
        await duplication_service.preview(db_session, AdminActor(), 999)


@pytest.mark.asyncio
async def test_preview_writes_nothing(db_session: AsyncSession, planning, make_class) -> None:
    await make_class(planning.course_a.id, planning.semester.id, [(7, "MONDAY", "08:00", "10:00")])
    await make_class(planning.course_a.id, planning.semester.id, [(8, "TUESDAY", "08:00", "10:00")])
    classes_before = await _count(db_session, AcademicClass)
    schedules_before = await _count(db_session, ClassSchedule)

    result = await duplication_service.preview(db_session, AdminActor(), planning.semester.id)

    assert result.class_count == 2
    assert result.schedule_count == 2
    assert await _count(db_session, AcademicClass) == classes_before
    assert await _count(db_session, ClassSchedule) == schedules_before


@pytest.mark.asyncio
async def test_duplicate_selected_into_current(db_session: AsyncSession, planning, make_class) -> None:
    past = await _semester(db_session, 2024, 2)
    keep = await make_class(planning.course_a.id, past.id, [(7, "MONDAY", "08:00", "10:00")])
    await make_class(planning.course_a.id, past.id)

    result = await duplication_service.duplicate_selected(db_session, AdminActor(), past.id, [keep.id])

    assert result.applied == 1
    assert result.target_semester_id == planning.semester.id
    assert await _count(db_session, AcademicClass, AcademicClass.semester_id == planning.semester.id) == 1
    assert await _schedule_count(db_session, planning.semester.id) == 1


@pytest.mark.asyncio
async def test_duplicate_selected_unknown_id_copies_nothing(db_session: AsyncSession, planning, make_class) -> None:
    past = await _semester(db_session, 2024, 2)
    known = await make_class(planning.course_a.id, past.id, [(7, "MONDAY", "08:00", "10:00")])
    before = await _count(db_session, AcademicClass)

    with pytest.raises(NotFoundError):
        await duplication_service.duplicate_selected(db_session, AdminActor(), past.id, [known.id, 4040])

    assert await _count(db_session, AcademicClass) == before


@pytest.mark.asyncio
async def test_duplication_endpoints(client: AsyncClient, headers, db_session: AsyncSession, planning, make_class) -> None:
    past = await _semester(db_session, 2024, 2)
    await make_class(planning.course_a.id, past.id, [(7, "MONDAY", "08:00", "10:00")])
    section_a = headers(SECTION_A_USER_ID, UserRole.SECTION)

    preview = await client.get(f"/api/v1/planning/preview/{past.id}", headers=section_a)
    assert preview.status_code == 200
    assert preview.json()["class_count"] == 1

    applied = await client.post(f"/api/v1/planning/apply-to-current/{past.id}", headers=section_a)
    assert applied.status_code == 201
    assert applied.json()["target_semester_id"] == planning.semester.id
    assert len(applied.json()["classes"]) == 1

    same = await client.post(
        "/api/v1/planning/duplicate",
        json={"source_semester_id": past.id, "target_semester_id": past.id},
        headers=headers(ADMIN_USER_ID, UserRole.ADMIN),
    )
    assert same.status_code == 400

    missing = await client.post(
        "/api/v1/planning/duplicate-selected",
        json={"source_semester_id": past.id, "class_ids": [31337]},
        headers=section_a,
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_failure_mid_copy_rolls_back_everything(
    db_session: AsyncSession, planning, make_class, monkeypatch
) -> None:
    source_id = planning.semester.id
    target_id = (await _semester(db_session, 2025, 2)).id
    await make_class(planning.course_a.id, source_id, [(7, "MONDAY", "08:00", "10:00")])
    await make_class(planning.course_a.id, source_id, [(8, "TUESDAY", "08:00", "10:00")])
    classes_before = await _count(db_session, AcademicClass)
    schedules_before = await _count(db_session, ClassSchedule)

    copy_schedule = duplication_service._copy_schedule
    copied = []

    def broken_second_copy(source: ClassSchedule, class_id: int) -> ClassSchedule:
        schedule = copy_schedule(source, class_id)
        copied.append(schedule)
        if len(copied) == 2:
            schedule.day = None  # NOT NULL column
        return schedule

    monkeypatch.setattr(duplication_service, "_copy_schedule", broken_second_copy)

    with pytest.raises(ServerError):
        await duplication_service.duplicate_all(db_session, AdminActor(), source_id, target_id)

    assert len(copied) == 2
    assert await _count(db_session, AcademicClass) == classes_before
    assert await _count(db_session, ClassSchedule) == schedules_before
    assert await _count(db_session, AcademicClass, AcademicClass.semester_id == target_id) == 0
