"""
Teacher workload figures.

Totals are recomputed from accepted assignments on every call with one SQL
aggregate; nothing is cached between calls.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import AssignmentStatus
from app.core.exceptions import NotFoundError
from app.core.models import Teacher, TeacherAssignment

from .schemas import ExtraHoursWarning, TeacherWorkloadResponse


async def get_teacher(db: AsyncSession, teacher_id: int) -> Teacher:
    teacher = await db.get(Teacher, teacher_id)
    if not teacher:
        raise NotFoundError(f"Teacher {teacher_id} not found")
    return teacher


async def _accepted_hours(db: AsyncSession, teacher_id: int, semester_id: Optional[int]) -> int:
    total = (
        TeacherAssignment.work_hours
        + TeacherAssignment.full_time_extra_hours
        + TeacherAssignment.adjunct_extra_hours
    )
    stmt = select(func.coalesce(func.sum(total), 0)).where(
        TeacherAssignment.teacher_id == teacher_id,
        TeacherAssignment.status == AssignmentStatus.ACCEPTED.value,
    )
    if semester_id is not None:
        stmt = stmt.where(TeacherAssignment.semester_id == semester_id)
    return int((await db.execute(stmt)).scalar_one())


async def assigned_hours(db: AsyncSession, teacher_id: int, semester_id: Optional[int] = None) -> int:
    """Work hours plus extra-hour allowances of the teacher's accepted assignments."""
    await get_teacher(db, teacher_id)
    return await _accepted_hours(db, teacher_id, semester_id)


async def exceeds_capacity(db: AsyncSession, teacher_id: int, semester_id: Optional[int] = None) -> bool:
    teacher = await get_teacher(db, teacher_id)
    return await _accepted_hours(db, teacher_id, semester_id) >= teacher.max_hours


async def available_for_extra_hours(
    db: AsyncSession, teacher_id: int, semester_id: Optional[int] = None
) -> bool:
    teacher = await get_teacher(db, teacher_id)
    return teacher.max_hours > await _accepted_hours(db, teacher_id, semester_id)


async def extra_hours_warning(
    db: AsyncSession,
    teacher_id: int,
    proposed_hours: int,
    semester_id: Optional[int] = None,
) -> ExtraHoursWarning:
    teacher = await get_teacher(db, teacher_id)
    current = await _accepted_hours(db, teacher_id, semester_id)
    return ExtraHoursWarning(
        teacher_id=teacher_id,
        current_assigned=current,
        max_hours=teacher.max_hours,
        proposed_hours=proposed_hours,
        excess_hours=max(0, current + proposed_hours - teacher.max_hours),
    )


def _report(teacher: Teacher, hours: int, semester_id: Optional[int]) -> TeacherWorkloadResponse:
    return TeacherWorkloadResponse(
        teacher_id=teacher.id,
        semester_id=semester_id,
        assigned_hours=hours,
        max_hours=teacher.max_hours,
        available_hours=max(0, teacher.max_hours - hours),
        exceeds_capacity=hours >= teacher.max_hours,
    )


async def workload_report(
    db: AsyncSession, teacher_id: int, semester_id: Optional[int] = None
) -> TeacherWorkloadResponse:
    teacher = await get_teacher(db, teacher_id)
    return _report(teacher, await _accepted_hours(db, teacher_id, semester_id), semester_id)


async def workload_report_all(db: AsyncSession, semester_id: Optional[int] = None) -> List[TeacherWorkloadResponse]:
    """Workload of every teacher, including those with no accepted assignment."""
    total = (
        TeacherAssignment.work_hours
        + TeacherAssignment.full_time_extra_hours
        + TeacherAssignment.adjunct_extra_hours
    )
    join_on = (TeacherAssignment.teacher_id == Teacher.id) & (
        TeacherAssignment.status == AssignmentStatus.ACCEPTED.value
    )
    if semester_id is not None:
        join_on = join_on & (TeacherAssignment.semester_id == semester_id)
    result = await db.execute(
        select(Teacher, func.coalesce(func.sum(total), 0))
        .outerjoin(TeacherAssignment, join_on)
        .group_by(Teacher.id)
        .order_by(Teacher.id)
    )
    return [_report(teacher, int(hours), semester_id) for teacher, hours in result.all()]


def extra_hours_for(teacher: Teacher, work_hours: int) -> Tuple[int, int]:
    """
    (full_time_extra_hours, adjunct_extra_hours) for an assignment.
    Full-time teachers earn extra hours above the weekly threshold; every hour
    of an adjunct teacher counts as extra. Others earn none.
    """
    if teacher.employment_type_id == settings.full_time_employment_type_id:
        return max(0, work_hours - settings.full_time_hours_threshold), 0
    if teacher.employment_type_id == settings.adjunct_employment_type_id:
        return 0, work_hours
    return 0, 0
