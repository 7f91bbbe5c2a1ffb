"""
Copy a semester's planning (classes and their schedules) into another semester.

Each entry point writes in a single transaction: any failure rolls back every
row inserted so far. Copies are not deduplicated against the target and
overlapping schedules are copied as they are.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.classes import service as class_service
from app.api.v1.classes.schemas import ClassResponse
from app.api.v1.semesters import service as semester_service
from app.auth.schemas import Actor
from app.core.exceptions import BadRequestError, NotFoundError, ServerError
from app.core.models import AcademicClass, ClassSchedule
from app.core.scope import ScopeResolver, filter_visible

from .schemas import DuplicateSelectedResponse, DuplicationResponse, PreviewResponse

logger = logging.getLogger(__name__)


async def _visible_source_classes(db: AsyncSession, actor: Actor, semester_id: int) -> List[AcademicClass]:
    result = await db.execute(
        select(AcademicClass).where(AcademicClass.semester_id == semester_id).order_by(AcademicClass.id)
    )
    resolver = ScopeResolver(db)
    return await filter_visible(actor, result.scalars().all(), resolver.class_ownership)


def _copy_class(source: AcademicClass, target_semester_id: int) -> AcademicClass:
    return AcademicClass(
        course_id=source.course_id,
        semester_id=target_semester_id,
        section=source.section,
        capacity=source.capacity,
        start_date=source.start_date,
        end_date=source.end_date,
        observation=source.observation,
        status_id=source.status_id,
    )


def _copy_schedule(source: ClassSchedule, class_id: int) -> ClassSchedule:
    return ClassSchedule(
        class_id=class_id,
        classroom_id=source.classroom_id,
        day=source.day,
        start_time=source.start_time,
        end_time=source.end_time,
        modality_id=source.modality_id,
        disability=source.disability,
    )


async def _copy_into(
    db: AsyncSession,
    sources: Sequence[AcademicClass],
    target_semester_id: int,
) -> List[Tuple[AcademicClass, List[ClassSchedule]]]:
    """Insert copies inside the open transaction and commit once. Rolls back on any failure."""
    schedules = await class_service.schedules_by_class(db, [c.id for c in sources])
    created: List[Tuple[AcademicClass, List[ClassSchedule]]] = []
    try:
        for source in sources:
            new_class = _copy_class(source, target_semester_id)
            db.add(new_class)
            await db.flush()
            new_schedules = [_copy_schedule(s, new_class.id) for s in schedules.get(source.id, [])]
            db.add_all(new_schedules)
            await db.flush()
            created.append((new_class, new_schedules))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Duplication into semester %s failed; rolled back", target_semester_id)
        raise ServerError()
    return created


async def duplicate_all(
    db: AsyncSession,
    actor: Actor,
    source_semester_id: int,
    target_semester_id: int,
) -> DuplicationResponse:
    await semester_service.ensure_semester_exists(db, source_semester_id)
    await semester_service.ensure_semester_exists(db, target_semester_id)
    if source_semester_id == target_semester_id:
        raise BadRequestError("Source and target semester must be different")

    sources = await _visible_source_classes(db, actor, source_semester_id)
    created = await _copy_into(db, sources, target_semester_id)
    logger.info(
        "Duplicated %s classes from semester %s to semester %s",
        len(created),
        source_semester_id,
        target_semester_id,
    )
    return DuplicationResponse(
        target_semester_id=target_semester_id,
        classes=[class_service.class_to_response(c, s) for c, s in created],
    )


async def duplicate_selected(
    db: AsyncSession,
    actor: Actor,
    source_semester_id: int,
    class_ids: Sequence[int],
    target_semester_id: Optional[int] = None,
) -> DuplicateSelectedResponse:
    """
    Copy only class_ids. Every id must be a visible class of the source
    semester, otherwise nothing is copied.
    """
    await semester_service.ensure_semester_exists(db, source_semester_id)
    if target_semester_id is None:
        target_semester_id = await semester_service.get_current_semester_id(db)
    else:
        await semester_service.ensure_semester_exists(db, target_semester_id)
    if source_semester_id == target_semester_id:
        raise BadRequestError("Source and target semester must be different")

    wanted = list(dict.fromkeys(class_ids))
    visible_by_id: Dict[int, AcademicClass] = {
        c.id: c for c in await _visible_source_classes(db, actor, source_semester_id)
    }
    missing = [class_id for class_id in wanted if class_id not in visible_by_id]
    if missing:
        raise NotFoundError(
            f"Classes not found in semester {source_semester_id}: {', '.join(str(i) for i in missing)}"
        )

    created = await _copy_into(db, [visible_by_id[i] for i in wanted], target_semester_id)
    logger.info(
        "Duplicated %s selected classes from semester %s to semester %s",
        len(created),
        source_semester_id,
        target_semester_id,
    )
    return DuplicateSelectedResponse(target_semester_id=target_semester_id, applied=len(created))


async def preview(db: AsyncSession, actor: Actor, semester_id: int) -> PreviewResponse:
    """Classes and schedules a duplication of semester_id would copy. Read-only."""
    await semester_service.ensure_semester_exists(db, semester_id)
    sources = await _visible_source_classes(db, actor, semester_id)
    schedules = await class_service.schedules_by_class(db, [c.id for c in sources])
    classes: List[ClassResponse] = [class_service.class_to_response(c, schedules.get(c.id, [])) for c in sources]
    return PreviewResponse(
        semester_id=semester_id,
        class_count=len(classes),
        schedule_count=sum(len(c.schedules) for c in classes),
        classes=classes,
    )


async def apply_to_current(db: AsyncSession, actor: Actor, source_semester_id: int) -> DuplicationResponse:
    target_semester_id = await semester_service.get_current_semester_id(db)
    return await duplicate_all(db, actor, source_semester_id, target_semester_id)
