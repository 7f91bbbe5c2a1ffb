import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import Actor, SectionActor
from app.core.exceptions import BadRequestError, NotFoundError, ServerError
from app.core.models import Course, Section

from .schemas import PlanningClosedResponse, PlanningStatusStats, SectionPlanningResponse

logger = logging.getLogger(__name__)


async def get_section_id_for_course(db: AsyncSession, course_id: int) -> Optional[int]:
    result = await db.execute(select(Course.section_id).where(Course.id == course_id))
    return result.scalar_one_or_none()


async def get_section_id_for_user(db: AsyncSession, user_id: int) -> Optional[int]:
    result = await db.execute(select(Section.id).where(Section.user_id == user_id))
    return result.scalar_one_or_none()


async def _get_own_section(db: AsyncSession, actor: Actor) -> Section:
    if not isinstance(actor, SectionActor):
        raise BadRequestError("Only a section owner has a planning status")
    section = await db.get(Section, actor.section_id)
    if not section:
        raise NotFoundError("Section not found")
    return section


async def close_planning(db: AsyncSession, actor: Actor) -> SectionPlanningResponse:
    """Mark the caller's section planning as finished for the current semester."""
    section = await _get_own_section(db, actor)
    section.planning_closed = True
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to close planning for section %s", actor.section_id)
        raise ServerError()
    await db.refresh(section)
    logger.info("Planning closed for section %s", section.id)
    return SectionPlanningResponse.model_validate(section)


async def is_planning_closed(db: AsyncSession, actor: Actor) -> PlanningClosedResponse:
    section = await _get_own_section(db, actor)
    return PlanningClosedResponse(section_id=section.id, planning_closed=bool(section.planning_closed))


async def open_planning_for_all_sections(db: AsyncSession) -> int:
    """Reopen planning for every section. Runs inside the caller's transaction; does not commit."""
    result = await db.execute(update(Section).values(planning_closed=False))
    return result.rowcount or 0


async def planning_status_stats(db: AsyncSession) -> PlanningStatusStats:
    total = (await db.execute(select(func.count(Section.id)))).scalar_one()
    closed = (
        await db.execute(select(func.count(Section.id)).where(Section.planning_closed.is_(True)))
    ).scalar_one()
    return PlanningStatusStats(total_sections=total, closed=closed, open=total - closed)
