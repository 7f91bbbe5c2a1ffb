from dataclasses import dataclass
from datetime import date, time
from typing import AsyncGenerator, Callable, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token
from app.core.enums import UserRole
from app.core.models import Course, Section, Semester, Teacher
from app.core.semester_cache import current_semester_cache
from app.db.session import Base, get_db
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_USER_ID = 1
SECTION_A_USER_ID = 100
SECTION_B_USER_ID = 200
TEACHER_USER_ID = 300
OTHER_TEACHER_USER_ID = 301


@pytest.fixture(autouse=True)
def reset_semester_cache() -> None:
    """The current-semester cache is process-wide; start every test empty."""
    current_semester_cache.invalidate()
    yield
    current_semester_cache.invalidate()


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; overrides the FastAPI get_db dependency."""
    # StaticPool keeps the single in-memory connection shared by every session.
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def token_headers(user_id: int, role: UserRole) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(user_id), "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers() -> Callable[[int, UserRole], Dict[str, str]]:
    return token_headers


@dataclass
class PlanningData:
    semester: Semester
    section_a: Section
    section_b: Section
    course_a: Course
    course_b: Course
    teacher: Teacher
    other_teacher: Teacher


@pytest.fixture()
async def planning(db_session: AsyncSession) -> PlanningData:
    """
    Current semester 2025-1, two sections with one course each, two teachers
    (40 max hours, full-time and adjunct).
    """
    semester = Semester(
        year=2025, period=1, start_date=date(2025, 1, 20), end_date=date(2025, 5, 30), is_current=True
    )
    section_a = Section(user_id=SECTION_A_USER_ID, name="Systems")
    section_b = Section(user_id=SECTION_B_USER_ID, name="Mathematics")
    db_session.add_all([semester, section_a, section_b])
    await db_session.flush()

    course_a = Course(name="Databases", section_id=section_a.id)
    course_b = Course(name="Calculus", section_id=section_b.id)
    teacher = Teacher(user_id=TEACHER_USER_ID, employment_type_id=1, max_hours=40)
    other_teacher = Teacher(user_id=OTHER_TEACHER_USER_ID, employment_type_id=2, max_hours=20)
    db_session.add_all([course_a, course_b, teacher, other_teacher])
    await db_session.commit()
    return PlanningData(
        semester=semester,
        section_a=section_a,
        section_b=section_b,
        course_a=course_a,
        course_b=course_b,
        teacher=teacher,
        other_teacher=other_teacher,
    )


@pytest.fixture()
def make_class(db_session: AsyncSession):
    """
    Factory inserting a class with schedules given as
    (classroom_id, day, "HH:MM", "HH:MM") tuples.
    """
    from app.core.models import AcademicClass, ClassSchedule

    async def _make(course_id: int, semester_id: int, schedules=(), capacity: int = 30) -> AcademicClass:
        academic_class = AcademicClass(course_id=course_id, semester_id=semester_id, capacity=capacity, section=1)
        db_session.add(academic_class)
        await db_session.flush()
        for classroom_id, day, start, end in schedules:
            db_session.add(
                ClassSchedule(
                    class_id=academic_class.id,
                    classroom_id=classroom_id,
                    day=day,
                    start_time=time.fromisoformat(start),
                    end_time=time.fromisoformat(end),
                )
            )
        await db_session.commit()
        return academic_class

    return _make
