"""
Teacher-to-class assignments: PENDING on creation, then ACCEPTED or REJECTED
by the teacher. Deletion is allowed from any state and re-deciding is allowed.

Every read and mutation is scoped by the caller's actor; rows outside the
scope behave as missing.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.classes import service as class_service
from app.api.v1.semesters import service as semester_service
from app.api.v1.workload import service as workload_service
from app.auth.schemas import Actor, TeacherActor
from app.core.config import settings
from app.core.enums import AssignmentStatus
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError, ServerError
from app.core.models import TeacherAssignment
from app.core.scope import ScopeResolver, filter_visible

from .schemas import (
    AssignmentStatistics,
    CreateTeacherAssignmentResponse,
    TeacherAssignmentCreate,
    TeacherAssignmentResponse,
    TeacherAssignmentUpdate,
    TeachingDatesUpdate,
)

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Teacher {teacher_id} is already assigned to class {class_id}"


def _to_response(a: TeacherAssignment) -> TeacherAssignmentResponse:
    return TeacherAssignmentResponse.model_validate(a)


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to %s", action)
        raise ServerError()


async def _visible(db: AsyncSession, actor: Actor, rows: Sequence[TeacherAssignment]) -> List[TeacherAssignmentResponse]:
    resolver = ScopeResolver(db)
    kept = await filter_visible(actor, rows, resolver.assignment_ownership)
    return [_to_response(a) for a in kept]


async def _get_visible(db: AsyncSession, actor: Actor, assignment_id: int) -> TeacherAssignment:
    assignment = await db.get(TeacherAssignment, assignment_id)
    if not assignment or not await ScopeResolver(db).can_see_assignment(actor, assignment):
        raise NotFoundError(f"Teacher assignment {assignment_id} not found")
    return assignment


async def _find_pair(db: AsyncSession, teacher_id: int, class_id: int) -> Optional[TeacherAssignment]:
    result = await db.execute(
        select(TeacherAssignment).where(
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.class_id == class_id,
        )
    )
    return result.scalar_one_or_none()


# ---------- Mutations ----------


async def create(
    db: AsyncSession, actor: Actor, payload: TeacherAssignmentCreate
) -> CreateTeacherAssignmentResponse:
    """
    Insert a PENDING assignment bound to the current semester. Overbooking is
    reported through `warning`, never refused.
    """
    teacher = await workload_service.get_teacher(db, payload.teacher_id)
    await class_service.get_visible_class(db, actor, payload.class_id)
    if await _find_pair(db, payload.teacher_id, payload.class_id):
        raise ConflictError(DUPLICATE_MESSAGE.format(teacher_id=payload.teacher_id, class_id=payload.class_id))
    semester_id = await semester_service.get_current_semester_id(db)

    full_time_extra, adjunct_extra = 0, 0
    if settings.apply_extra_hours_policy:
        full_time_extra, adjunct_extra = workload_service.extra_hours_for(teacher, payload.work_hours)
    proposed = payload.work_hours + full_time_extra + adjunct_extra
    warning = await workload_service.extra_hours_warning(db, teacher.id, proposed, semester_id)

    assignment = TeacherAssignment(
        teacher_id=payload.teacher_id,
        class_id=payload.class_id,
        semester_id=semester_id,
        work_hours=payload.work_hours,
        full_time_extra_hours=full_time_extra,
        adjunct_extra_hours=adjunct_extra,
        status=AssignmentStatus.PENDING.value,
        decision=None,
        observation=payload.observation,
    )
    db.add(assignment)
    try:
        await db.commit()
    except IntegrityError:
        # Lost the race against a concurrent create for the same pair.
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE.format(teacher_id=payload.teacher_id, class_id=payload.class_id))
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to assign teacher %s to class %s", payload.teacher_id, payload.class_id)
        raise ServerError()
    await db.refresh(assignment)

    if warning.excess_hours > 0:
        logger.warning(
            "Teacher %s would exceed max hours by %s (assigned=%s, max=%s, proposed=%s)",
            teacher.id,
            warning.excess_hours,
            warning.current_assigned,
            warning.max_hours,
            warning.proposed_hours,
        )
    return CreateTeacherAssignmentResponse(
        assignment=_to_response(assignment),
        warning=warning if warning.excess_hours > 0 else None,
    )


async def update(
    db: AsyncSession, actor: Actor, assignment_id: int, payload: TeacherAssignmentUpdate
) -> TeacherAssignmentResponse:
    """Change hours and/or observation. Status is left as is."""
    assignment = await _get_visible(db, actor, assignment_id)
    if payload.work_hours is not None:
        assignment.work_hours = payload.work_hours
        if settings.apply_extra_hours_policy:
            teacher = await workload_service.get_teacher(db, assignment.teacher_id)
            assignment.full_time_extra_hours, assignment.adjunct_extra_hours = workload_service.extra_hours_for(
                teacher, payload.work_hours
            )
    if payload.observation is not None:
        assignment.observation = payload.observation
    await _commit(db, f"update teacher assignment {assignment_id}")
    await db.refresh(assignment)
    return _to_response(assignment)


async def decide(
    db: AsyncSession,
    actor: Actor,
    assignment_id: int,
    accept: bool,
    observation: Optional[str] = None,
) -> TeacherAssignmentResponse:
    """Accept or reject. An already decided assignment may be decided again."""
    assignment = await _get_visible(db, actor, assignment_id)
    previous = assignment.status
    assignment.status = (AssignmentStatus.ACCEPTED if accept else AssignmentStatus.REJECTED).value
    assignment.decision = accept
    assignment.observation = observation
    await _commit(db, f"decide teacher assignment {assignment_id}")
    await db.refresh(assignment)
    logger.info("Teacher assignment %s %s -> %s", assignment_id, previous, assignment.status)
    return _to_response(assignment)


async def update_teaching_dates(
    db: AsyncSession, actor: Actor, assignment_id: int, payload: TeachingDatesUpdate
) -> TeacherAssignmentResponse:
    if payload.start_date and payload.end_date and payload.start_date > payload.end_date:
        raise BadRequestError("start_date must not be after end_date")
    assignment = await _get_visible(db, actor, assignment_id)
    assignment.start_date = payload.start_date
    assignment.end_date = payload.end_date
    await _commit(db, f"update teaching dates of assignment {assignment_id}")
    await db.refresh(assignment)
    return _to_response(assignment)


async def delete(db: AsyncSession, actor: Actor, assignment_id: int) -> None:
    assignment = await _get_visible(db, actor, assignment_id)
    await db.delete(assignment)
    await _commit(db, f"delete teacher assignment {assignment_id}")


async def delete_by_pair(db: AsyncSession, actor: Actor, teacher_id: int, class_id: int) -> None:
    assignment = await _find_pair(db, teacher_id, class_id)
    if not assignment or not await ScopeResolver(db).can_see_assignment(actor, assignment):
        raise NotFoundError(f"No assignment of teacher {teacher_id} to class {class_id}")
    await db.delete(assignment)
    await _commit(db, f"delete assignment of teacher {teacher_id} to class {class_id}")


# ---------- Reads ----------


async def get(db: AsyncSession, actor: Actor, assignment_id: int) -> TeacherAssignmentResponse:
    return _to_response(await _get_visible(db, actor, assignment_id))


async def get_by_pair(db: AsyncSession, actor: Actor, teacher_id: int, class_id: int) -> TeacherAssignmentResponse:
    assignment = await _find_pair(db, teacher_id, class_id)
    if not assignment or not await ScopeResolver(db).can_see_assignment(actor, assignment):
        raise NotFoundError(f"No assignment of teacher {teacher_id} to class {class_id}")
    return _to_response(assignment)


async def _list(db: AsyncSession, actor: Actor, *criteria) -> List[TeacherAssignmentResponse]:
    stmt = select(TeacherAssignment)
    if isinstance(actor, TeacherActor):
        stmt = stmt.where(TeacherAssignment.teacher_id == actor.teacher_id)
    result = await db.execute(stmt.where(*criteria).order_by(TeacherAssignment.id))
    return await _visible(db, actor, result.scalars().all())


async def list_for_teacher(db: AsyncSession, actor: Actor, teacher_id: int) -> List[TeacherAssignmentResponse]:
    return await _list(db, actor, TeacherAssignment.teacher_id == teacher_id)


async def list_for_class(db: AsyncSession, actor: Actor, class_id: int) -> List[TeacherAssignmentResponse]:
    return await _list(db, actor, TeacherAssignment.class_id == class_id)


async def list_by_status(
    db: AsyncSession, actor: Actor, status: AssignmentStatus
) -> List[TeacherAssignmentResponse]:
    return await _list(db, actor, TeacherAssignment.status == AssignmentStatus(status).value)


async def list_current_semester(db: AsyncSession, actor: Actor) -> List[TeacherAssignmentResponse]:
    semester_id = await semester_service.get_current_semester_id(db)
    return await _list(db, actor, TeacherAssignment.semester_id == semester_id)


async def list_pending_current_semester(db: AsyncSession, actor: Actor) -> List[TeacherAssignmentResponse]:
    semester_id = await semester_service.get_current_semester_id(db)
    return await _list(
        db,
        actor,
        TeacherAssignment.semester_id == semester_id,
        TeacherAssignment.status == AssignmentStatus.PENDING.value,
    )


async def statistics(
    db: AsyncSession, actor: Actor, semester_id: Optional[int] = None
) -> AssignmentStatistics:
    """Counts per status over the assignments the actor can see in the semester (current by default)."""
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    rows = await _list(db, actor, TeacherAssignment.semester_id == semester_id)
    counts = {s.value: 0 for s in AssignmentStatus}
    for row in rows:
        counts[row.status] = counts.get(row.status, 0) + 1
    accepted = counts[AssignmentStatus.ACCEPTED.value]
    decided = accepted + counts[AssignmentStatus.REJECTED.value]
    return AssignmentStatistics(
        semester_id=semester_id,
        total=len(rows),
        pending=counts[AssignmentStatus.PENDING.value],
        accepted=accepted,
        rejected=counts[AssignmentStatus.REJECTED.value],
        acceptance_rate=round(accepted / decided, 4) if decided else 0.0,
    )
