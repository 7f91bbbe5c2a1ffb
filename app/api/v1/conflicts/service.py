"""
Room and teacher schedule conflicts.

Overlaps are reported, never raised: callers decide whether a conflict blocks
an operation. Schedules without a classroom (remote modality) never take part
in room conflicts.
"""

from collections import defaultdict
from datetime import time
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.semesters import service as semester_service
from app.auth.schemas import Actor, AdminActor
from app.core.enums import WEEKDAY_ORDER, AssignmentStatus, Weekday
from app.core.exceptions import BadRequestError
from app.core.models import AcademicClass, ClassSchedule, TeacherAssignment
from app.core.scheduling import group_overlap_clusters, overlaps
from app.core.scope import Ownership, ScopeResolver, visible

from app.api.v1.classes.schemas import ScheduleResponse
from .schemas import ClassroomConflictResponse, TeacherConflictResponse


def validate_time_range(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise BadRequestError("start_time must be before end_time")


async def _candidate_schedules(
    db: AsyncSession,
    classroom_id: int,
    day: str,
    exclude_class_id: Optional[int],
    semester_id: Optional[int],
    exclude_schedule_id: Optional[int] = None,
) -> Sequence[ClassSchedule]:
    stmt = select(ClassSchedule).where(
        ClassSchedule.classroom_id == classroom_id,
        ClassSchedule.day == day,
    )
    if exclude_class_id is not None:
        stmt = stmt.where(ClassSchedule.class_id != exclude_class_id)
    if exclude_schedule_id is not None:
        stmt = stmt.where(ClassSchedule.id != exclude_schedule_id)
    if semester_id is not None:
        stmt = stmt.join(AcademicClass, AcademicClass.id == ClassSchedule.class_id).where(
            AcademicClass.semester_id == semester_id
        )
    result = await db.execute(stmt.order_by(ClassSchedule.start_time, ClassSchedule.id))
    return result.scalars().all()


async def find_conflicts(
    db: AsyncSession,
    classroom_id: Optional[int],
    day: str,
    start_time: time,
    end_time: time,
    exclude_class_id: Optional[int] = None,
    semester_id: Optional[int] = None,
    exclude_schedule_id: Optional[int] = None,
) -> List[ClassSchedule]:
    """
    Schedules in the classroom on that day whose window overlaps [start_time, end_time].
    Schedules of exclude_class_id are skipped so a class never conflicts with its own slots;
    exclude_schedule_id skips only that one row (the previous version of an edited slot).
    """
    validate_time_range(start_time, end_time)
    if classroom_id is None:
        return []
    day = Weekday(day).value
    candidates = await _candidate_schedules(db, classroom_id, day, exclude_class_id, semester_id, exclude_schedule_id)
    return [s for s in candidates if overlaps(s.start_time, s.end_time, start_time, end_time)]


async def has_conflict(
    db: AsyncSession,
    classroom_id: Optional[int],
    day: str,
    start_time: time,
    end_time: time,
    exclude_class_id: Optional[int] = None,
    semester_id: Optional[int] = None,
    exclude_schedule_id: Optional[int] = None,
) -> bool:
    validate_time_range(start_time, end_time)
    if classroom_id is None:
        return False
    day = Weekday(day).value
    candidates = await _candidate_schedules(db, classroom_id, day, exclude_class_id, semester_id, exclude_schedule_id)
    return any(overlaps(s.start_time, s.end_time, start_time, end_time) for s in candidates)


async def check_slot(
    db: AsyncSession,
    classroom_id: Optional[int],
    day: str,
    start_time: time,
    end_time: time,
    exclude_class_id: Optional[int] = None,
    semester_id: Optional[int] = None,
) -> List[ClassSchedule]:
    """find_conflicts for a proposed slot, limited to one semester (the current one by default)."""
    validate_time_range(start_time, end_time)
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    return await find_conflicts(
        db, classroom_id, day, start_time, end_time,
        exclude_class_id=exclude_class_id, semester_id=semester_id,
    )


async def _cluster_visible(resolver: ScopeResolver, actor: Actor, cluster: List[ClassSchedule]) -> bool:
    if isinstance(actor, AdminActor):
        return True
    for schedule in cluster:
        section_id = await resolver.section_for_class(schedule.class_id)
        if visible(actor, Ownership(section_id=section_id)):
            return True
    return False


def _window(cluster: List[ClassSchedule]) -> Tuple[time, time]:
    """Common window shared by every schedule in the cluster."""
    return max(s.start_time for s in cluster), min(s.end_time for s in cluster)


def _class_ids(cluster: List[ClassSchedule]) -> List[int]:
    return sorted({s.class_id for s in cluster})


async def _clusters_by_key(
    resolver: ScopeResolver,
    actor: Actor,
    grouped: Dict[Tuple[int, str], List[ClassSchedule]],
) -> List[Tuple[Tuple[int, str], List[ClassSchedule]]]:
    found = []
    for key in sorted(grouped, key=lambda k: (k[0], WEEKDAY_ORDER[k[1]])):
        for cluster in group_overlap_clusters(grouped[key]):
            if await _cluster_visible(resolver, actor, cluster):
                found.append((key, cluster))
    return found


async def classroom_day_report(
    db: AsyncSession,
    actor: Actor,
    classroom_id: int,
    day: str,
    semester_id: Optional[int] = None,
) -> List[ClassroomConflictResponse]:
    """Groups of mutually overlapping schedules in one classroom on one day."""
    day = Weekday(day).value
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    schedules = await _candidate_schedules(db, classroom_id, day, None, semester_id)
    return await _classroom_reports(db, actor, {(classroom_id, day): list(schedules)})


async def classroom_conflicts(
    db: AsyncSession,
    actor: Actor,
    semester_id: Optional[int] = None,
) -> List[ClassroomConflictResponse]:
    """Conflict groups for every classroom in the semester (current by default)."""
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    result = await db.execute(
        select(ClassSchedule)
        .join(AcademicClass, AcademicClass.id == ClassSchedule.class_id)
        .where(AcademicClass.semester_id == semester_id, ClassSchedule.classroom_id.is_not(None))
        .order_by(ClassSchedule.classroom_id, ClassSchedule.start_time, ClassSchedule.id)
    )
    grouped: Dict[Tuple[int, str], List[ClassSchedule]] = defaultdict(list)
    for schedule in result.scalars().all():
        grouped[(schedule.classroom_id, schedule.day)].append(schedule)
    return await _classroom_reports(db, actor, grouped)


async def _classroom_reports(
    db: AsyncSession,
    actor: Actor,
    grouped: Dict[Tuple[int, str], List[ClassSchedule]],
) -> List[ClassroomConflictResponse]:
    resolver = ScopeResolver(db)
    reports = []
    for (classroom_id, day), cluster in await _clusters_by_key(resolver, actor, grouped):
        start, end = _window(cluster)
        reports.append(
            ClassroomConflictResponse(
                classroom_id=classroom_id,
                day=day,
                conflict_start_time=start,
                conflict_end_time=end,
                conflicting_class_ids=_class_ids(cluster),
                schedules=[ScheduleResponse.model_validate(s) for s in cluster],
            )
        )
    return reports


async def teacher_conflicts(
    db: AsyncSession,
    actor: Actor,
    semester_id: Optional[int] = None,
) -> List[TeacherConflictResponse]:
    """
    Overlapping schedules among the classes each teacher is assigned to
    (pending or accepted) in the semester, current by default.
    """
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    result = await db.execute(
        select(TeacherAssignment.teacher_id, ClassSchedule)
        .join(ClassSchedule, ClassSchedule.class_id == TeacherAssignment.class_id)
        .where(
            TeacherAssignment.semester_id == semester_id,
            TeacherAssignment.status != AssignmentStatus.REJECTED.value,
        )
        .order_by(TeacherAssignment.teacher_id, ClassSchedule.start_time, ClassSchedule.id)
    )
    grouped: Dict[Tuple[int, str], List[ClassSchedule]] = defaultdict(list)
    for teacher_id, schedule in result.all():
        grouped[(teacher_id, schedule.day)].append(schedule)

    resolver = ScopeResolver(db)
    reports = []
    for (teacher_id, day), cluster in await _clusters_by_key(resolver, actor, grouped):
        start, end = _window(cluster)
        reports.append(
            TeacherConflictResponse(
                teacher_id=teacher_id,
                day=day,
                conflict_start_time=start,
                conflict_end_time=end,
                conflicting_class_ids=_class_ids(cluster),
                schedules=[ScheduleResponse.model_validate(s) for s in cluster],
            )
        )
    return reports
