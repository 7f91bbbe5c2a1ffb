import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.sections.service import open_planning_for_all_sections
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError, ServerError
from app.core.models import Semester
from app.core.semester_cache import current_semester_cache

from .schemas import SemesterCreate, SemesterResponse

logger = logging.getLogger(__name__)


def _to_response(s: Semester) -> SemesterResponse:
    return SemesterResponse(
        id=s.id,
        name=f"{s.year}-{s.period}",
        year=s.year,
        period=s.period,
        start_date=s.start_date,
        end_date=s.end_date,
        start_special_week=s.start_special_week,
        is_current=s.is_current,
        created_at=s.created_at,
    )


def _validate(payload: SemesterCreate) -> None:
    if payload.year is None or payload.period is None or payload.start_date is None or payload.end_date is None:
        raise BadRequestError("Semester year, start date, end date and period cannot be null")
    if payload.end_date <= payload.start_date:
        raise BadRequestError("end_date must be after start_date")


async def create_semester(db: AsyncSession, payload: SemesterCreate) -> SemesterResponse:
    """
    Create a semester and make it current. Deactivating the previous current
    semester, inserting the new one and reopening section planning happen in one
    transaction; the current-semester cache is replaced before returning.
    """
    _validate(payload)
    existing = await db.execute(
        select(Semester.id).where(Semester.year == payload.year, Semester.period == payload.period)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Semester {payload.year}-{payload.period} already exists")

    try:
        # Lock the current row so concurrent activations serialize here.
        current_result = await db.execute(
            select(Semester).where(Semester.is_current.is_(True)).with_for_update()
        )
        previous = current_result.scalar_one_or_none()
        if previous:
            previous.is_current = False
            # Flush the flip before the insert; the partial unique index allows one current row.
            await db.flush()

        semester = Semester(
            year=payload.year,
            period=payload.period,
            start_date=payload.start_date,
            end_date=payload.end_date,
            start_special_week=payload.start_special_week,
            is_current=True,
        )
        db.add(semester)
        await db.flush()
        reopened = await open_planning_for_all_sections(db)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Another semester was activated concurrently or year/period already exists")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to create semester %s-%s", payload.year, payload.period)
        raise ServerError()

    current_semester_cache.set(semester.id)
    logger.info(
        "Semester %s-%s created as current (id=%s, previous=%s, sections reopened=%s)",
        semester.year,
        semester.period,
        semester.id,
        previous.id if previous else None,
        reopened,
    )
    return _to_response(semester)


async def get_current_semester_id(db: AsyncSession) -> int:
    """Id of the current semester, served from the cache when fresh. NotFound when none is current."""
    cached = current_semester_cache.get()
    if cached is not None:
        return cached
    # A semester created while this query is in flight wins over the value read here.
    generation = current_semester_cache.generation
    result = await db.execute(select(Semester.id).where(Semester.is_current.is_(True)))
    semester_id = result.scalar_one_or_none()
    if semester_id is None:
        raise NotFoundError("No current semester found")
    current_semester_cache.set_if_unchanged(semester_id, generation)
    return semester_id


async def get_current_semester(db: AsyncSession) -> SemesterResponse:
    semester_id = await get_current_semester_id(db)
    semester = await db.get(Semester, semester_id)
    if not semester:
        # Cached id points at a row that no longer exists.
        current_semester_cache.invalidate()
        raise NotFoundError("No current semester found")
    return _to_response(semester)


async def get_semester(db: AsyncSession, semester_id: int) -> SemesterResponse:
    semester = await db.get(Semester, semester_id)
    if not semester:
        raise NotFoundError("Semester not found")
    return _to_response(semester)


async def get_semester_by_year_and_period(db: AsyncSession, year: int, period: int) -> Optional[SemesterResponse]:
    result = await db.execute(select(Semester).where(Semester.year == year, Semester.period == period))
    semester = result.scalar_one_or_none()
    return _to_response(semester) if semester else None


async def list_semesters(db: AsyncSession) -> List[SemesterResponse]:
    result = await db.execute(select(Semester).order_by(Semester.year.desc(), Semester.period.desc()))
    return [_to_response(s) for s in result.scalars().all()]


async def list_past_semesters(db: AsyncSession) -> List[SemesterResponse]:
    """Every semester except the current one, newest first."""
    current_id = await get_current_semester_id(db)
    result = await db.execute(
        select(Semester)
        .where(Semester.id != current_id)
        .order_by(Semester.year.desc(), Semester.period.desc())
    )
    return [_to_response(s) for s in result.scalars().all()]


async def ensure_semester_exists(db: AsyncSession, semester_id: int) -> Semester:
    semester = await db.get(Semester, semester_id)
    if not semester:
        raise NotFoundError(f"Semester {semester_id} not found")
    return semester
