import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.conflicts import service as conflict_service
from app.api.v1.semesters import service as semester_service
from app.auth.schemas import Actor, SectionActor
from app.core.config import settings
from app.core.enums import AssignmentStatus, Weekday
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError, ServerError
from app.core.models import AcademicClass, ClassSchedule, Course, TeacherAssignment
from app.core.scheduling import overlaps
from app.core.scope import ScopeResolver, filter_visible

from .schemas import (
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    ClassUtilizationStats,
    CreateClassResponse,
    ScheduleCreate,
    SchedulePatch,
    ScheduleResponse,
    ScheduleWithConflictsResponse,
)

logger = logging.getLogger(__name__)


def class_to_response(c: AcademicClass, schedules: Iterable[ClassSchedule] = ()) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        course_id=c.course_id,
        semester_id=c.semester_id,
        section=c.section,
        capacity=c.capacity,
        start_date=c.start_date,
        end_date=c.end_date,
        observation=c.observation,
        status_id=c.status_id,
        schedules=[ScheduleResponse.model_validate(s) for s in schedules],
    )


async def schedules_by_class(db: AsyncSession, class_ids: Sequence[int]) -> Dict[int, List[ClassSchedule]]:
    """Schedules of the given classes keyed by class id, ordered by day then start."""
    grouped: Dict[int, List[ClassSchedule]] = defaultdict(list)
    if not class_ids:
        return grouped
    result = await db.execute(
        select(ClassSchedule)
        .where(ClassSchedule.class_id.in_(class_ids))
        .order_by(ClassSchedule.class_id, ClassSchedule.day, ClassSchedule.start_time, ClassSchedule.id)
    )
    for schedule in result.scalars().all():
        grouped[schedule.class_id].append(schedule)
    return grouped


async def _responses(db: AsyncSession, classes: Sequence[AcademicClass]) -> List[ClassResponse]:
    schedules = await schedules_by_class(db, [c.id for c in classes])
    return [class_to_response(c, schedules.get(c.id, [])) for c in classes]


def _validate_class_fields(capacity: int, start_date: Optional[date], end_date: Optional[date]) -> None:
    if capacity < 1 or capacity > settings.max_class_capacity:
        raise BadRequestError(f"capacity must be between 1 and {settings.max_class_capacity}")
    if start_date and end_date and start_date > end_date:
        raise BadRequestError("start_date must not be after end_date")


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to %s", action)
        raise ServerError()


async def _ensure_course_visible(db: AsyncSession, actor: Actor, course_id: int) -> Course:
    course = await db.get(Course, course_id)
    if not course:
        raise NotFoundError(f"Course {course_id} not found")
    if isinstance(actor, SectionActor) and course.section_id != actor.section_id:
        raise NotFoundError(f"Course {course_id} not found")
    return course


async def get_visible_class(
    db: AsyncSession,
    actor: Actor,
    class_id: int,
    resolver: Optional[ScopeResolver] = None,
) -> AcademicClass:
    """Class by id; NotFound when missing or outside the actor's scope."""
    academic_class = await db.get(AcademicClass, class_id)
    if not academic_class:
        raise NotFoundError(f"Class {class_id} not found")
    resolver = resolver or ScopeResolver(db)
    if not await resolver.can_see_class(actor, academic_class):
        raise NotFoundError(f"Class {class_id} not found")
    return academic_class


async def _schedule_conflicts(
    db: AsyncSession,
    classroom_id: Optional[int],
    day: str,
    start_time,
    end_time,
    semester_id: int,
    exclude_schedule_id: Optional[int] = None,
) -> List[ClassSchedule]:
    conflicts = await conflict_service.find_conflicts(
        db, classroom_id, day, start_time, end_time,
        semester_id=semester_id, exclude_schedule_id=exclude_schedule_id,
    )
    if conflicts and settings.block_schedule_conflicts:
        raise ConflictError(
            f"Classroom {classroom_id} is already booked on {day} between {start_time} and {end_time}"
        )
    return conflicts


def _overlapping_slots(slots: Sequence[ScheduleCreate]) -> List[int]:
    """Indexes of the slots in one request that share a classroom and day and overlap each other."""
    clashing = set()
    for i, a in enumerate(slots):
        for j in range(i + 1, len(slots)):
            b = slots[j]
            if a.classroom_id is None or a.classroom_id != b.classroom_id or a.day != b.day:
                continue
            if overlaps(a.start_time, a.end_time, b.start_time, b.end_time):
                clashing.update((i, j))
    return sorted(clashing)


# ---------- Classes ----------


async def create_class(db: AsyncSession, actor: Actor, payload: ClassCreate) -> CreateClassResponse:
    """
    Create class in the current semester with its schedules. Overlaps with existing
    schedules, and between the new schedules themselves, are returned, not raised.
    """
    _validate_class_fields(payload.capacity, payload.start_date, payload.end_date)
    await _ensure_course_visible(db, actor, payload.course_id)
    semester_id = await semester_service.get_current_semester_id(db)

    conflicts: List[ClassSchedule] = []
    for sched in payload.schedules:
        conflicts.extend(
            await _schedule_conflicts(
                db, sched.classroom_id, sched.day.value, sched.start_time, sched.end_time, semester_id
            )
        )
    clashing = _overlapping_slots(payload.schedules)
    if clashing and settings.block_schedule_conflicts:
        raise ConflictError("Schedules of the class overlap each other in the same classroom")

    academic_class = AcademicClass(
        course_id=payload.course_id,
        semester_id=semester_id,
        section=payload.section,
        capacity=payload.capacity,
        start_date=payload.start_date,
        end_date=payload.end_date,
        observation=payload.observation,
        status_id=payload.status_id,
    )
    db.add(academic_class)
    try:
        await db.flush()
        schedules = []
        for sched in payload.schedules:
            schedule = ClassSchedule(
                class_id=academic_class.id,
                classroom_id=sched.classroom_id,
                day=sched.day.value,
                start_time=sched.start_time,
                end_time=sched.end_time,
                modality_id=sched.modality_id,
                disability=sched.disability,
            )
            db.add(schedule)
            schedules.append(schedule)
        await db.flush()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to create class for course %s", payload.course_id)
        raise ServerError()
    conflicts.extend(schedules[i] for i in clashing)
    await _commit(db, f"create class for course {payload.course_id}")
    return CreateClassResponse(
        academic_class=class_to_response(academic_class, schedules),
        conflicts=[ScheduleResponse.model_validate(s) for s in conflicts],
    )


async def get_class(db: AsyncSession, actor: Actor, class_id: int) -> ClassResponse:
    academic_class = await get_visible_class(db, actor, class_id)
    schedules = await schedules_by_class(db, [academic_class.id])
    return class_to_response(academic_class, schedules.get(academic_class.id, []))


async def _visible_classes(db: AsyncSession, actor: Actor, stmt) -> List[AcademicClass]:
    result = await db.execute(stmt.order_by(AcademicClass.id))
    resolver = ScopeResolver(db)
    return await filter_visible(actor, result.scalars().all(), resolver.class_ownership)


async def list_classes(
    db: AsyncSession,
    actor: Actor,
    semester_id: Optional[int] = None,
    course_id: Optional[int] = None,
    section: Optional[int] = None,
) -> List[ClassResponse]:
    stmt = select(AcademicClass)
    if section is not None:
        stmt = stmt.where(AcademicClass.section == section)
    if semester_id is not None:
        stmt = stmt.where(AcademicClass.semester_id == semester_id)
    if course_id is not None:
        stmt = stmt.where(AcademicClass.course_id == course_id)
    return await _responses(db, await _visible_classes(db, actor, stmt))


async def list_current_semester_classes(db: AsyncSession, actor: Actor) -> List[ClassResponse]:
    semester_id = await semester_service.get_current_semester_id(db)
    return await list_classes(db, actor, semester_id=semester_id)


async def list_classes_without_classroom(db: AsyncSession, actor: Actor) -> List[ClassResponse]:
    """Current-semester classes none of whose schedules has a classroom (includes classes with no schedules)."""
    semester_id = await semester_service.get_current_semester_id(db)
    with_room = exists().where(
        ClassSchedule.class_id == AcademicClass.id,
        ClassSchedule.classroom_id.is_not(None),
    )
    stmt = select(AcademicClass).where(AcademicClass.semester_id == semester_id, ~with_room)
    return await _responses(db, await _visible_classes(db, actor, stmt))


async def list_classes_without_teacher(db: AsyncSession, actor: Actor) -> List[ClassResponse]:
    """Current-semester classes with no accepted teacher assignment."""
    semester_id = await semester_service.get_current_semester_id(db)
    confirmed = exists().where(
        TeacherAssignment.class_id == AcademicClass.id,
        TeacherAssignment.status == AssignmentStatus.ACCEPTED.value,
    )
    stmt = select(AcademicClass).where(AcademicClass.semester_id == semester_id, ~confirmed)
    return await _responses(db, await _visible_classes(db, actor, stmt))


async def update_class(db: AsyncSession, actor: Actor, class_id: int, payload: ClassUpdate) -> ClassResponse:
    academic_class = await get_visible_class(db, actor, class_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("course_id") is not None:
        await _ensure_course_visible(db, actor, changes["course_id"])
    capacity = changes.get("capacity") if changes.get("capacity") is not None else academic_class.capacity
    start_date = changes["start_date"] if "start_date" in changes else academic_class.start_date
    end_date = changes["end_date"] if "end_date" in changes else academic_class.end_date
    _validate_class_fields(capacity, start_date, end_date)

    for field, value in changes.items():
        if field in ("course_id", "capacity") and value is None:
            continue
        setattr(academic_class, field, value)
    await _commit(db, f"update class {class_id}")
    await db.refresh(academic_class)
    schedules = await schedules_by_class(db, [class_id])
    return class_to_response(academic_class, schedules.get(class_id, []))


async def delete_class(db: AsyncSession, actor: Actor, class_id: int) -> None:
    """Delete class together with its schedules and teacher assignments."""
    academic_class = await get_visible_class(db, actor, class_id)
    await db.execute(delete(ClassSchedule).where(ClassSchedule.class_id == class_id))
    await db.execute(delete(TeacherAssignment).where(TeacherAssignment.class_id == class_id))
    await db.delete(academic_class)
    await _commit(db, f"delete class {class_id}")
    logger.info("Class %s deleted", class_id)


async def utilization_stats(
    db: AsyncSession, actor: Actor, semester_id: Optional[int] = None
) -> ClassUtilizationStats:
    """Class count and capacity figures for the semester (current by default), within the actor's scope."""
    if semester_id is None:
        semester_id = await semester_service.get_current_semester_id(db)
    stmt = select(func.count(AcademicClass.id), func.coalesce(func.sum(AcademicClass.capacity), 0)).where(
        AcademicClass.semester_id == semester_id
    )
    if isinstance(actor, SectionActor):
        stmt = stmt.join(Course, Course.id == AcademicClass.course_id).where(
            Course.section_id == actor.section_id
        )
    count, total = (await db.execute(stmt)).one()
    return ClassUtilizationStats(
        semester_id=semester_id,
        class_count=count,
        total_capacity=total,
        average_capacity=round(total / count, 2) if count else 0.0,
    )


# ---------- Schedules ----------


async def _get_visible_schedule(db: AsyncSession, actor: Actor, schedule_id: int) -> ClassSchedule:
    schedule = await db.get(ClassSchedule, schedule_id)
    if not schedule:
        raise NotFoundError(f"Schedule {schedule_id} not found")
    try:
        await get_visible_class(db, actor, schedule.class_id)
    except NotFoundError:
        raise NotFoundError(f"Schedule {schedule_id} not found")
    return schedule


async def add_schedule(
    db: AsyncSession, actor: Actor, class_id: int, payload: ScheduleCreate
) -> ScheduleWithConflictsResponse:
    academic_class = await get_visible_class(db, actor, class_id)
    conflicts = await _schedule_conflicts(
        db, payload.classroom_id, payload.day.value, payload.start_time, payload.end_time,
        academic_class.semester_id,
    )
    schedule = ClassSchedule(
        class_id=class_id,
        classroom_id=payload.classroom_id,
        day=payload.day.value,
        start_time=payload.start_time,
        end_time=payload.end_time,
        modality_id=payload.modality_id,
        disability=payload.disability,
    )
    db.add(schedule)
    await _commit(db, f"add schedule to class {class_id}")
    await db.refresh(schedule)
    return ScheduleWithConflictsResponse(
        schedule=ScheduleResponse.model_validate(schedule),
        conflicts=[ScheduleResponse.model_validate(s) for s in conflicts],
    )


async def list_schedules(db: AsyncSession, actor: Actor, class_id: int) -> List[ScheduleResponse]:
    await get_visible_class(db, actor, class_id)
    schedules = await schedules_by_class(db, [class_id])
    return [ScheduleResponse.model_validate(s) for s in schedules.get(class_id, [])]


async def _visible_schedules(db: AsyncSession, actor: Actor, *criteria) -> List[ScheduleResponse]:
    result = await db.execute(
        select(ClassSchedule).where(*criteria).order_by(ClassSchedule.start_time, ClassSchedule.id)
    )
    resolver = ScopeResolver(db)
    kept = await filter_visible(actor, result.scalars().all(), resolver.schedule_ownership)
    return [ScheduleResponse.model_validate(s) for s in kept]


async def list_schedules_by_classroom(db: AsyncSession, actor: Actor, classroom_id: int) -> List[ScheduleResponse]:
    return await _visible_schedules(db, actor, ClassSchedule.classroom_id == classroom_id)


async def list_schedules_by_day(db: AsyncSession, actor: Actor, day: Weekday) -> List[ScheduleResponse]:
    return await _visible_schedules(db, actor, ClassSchedule.day == Weekday(day).value)


async def list_schedules_by_disability(db: AsyncSession, actor: Actor, disability: bool) -> List[ScheduleResponse]:
    """Schedules flagged (or not) for disability accommodations."""
    return await _visible_schedules(db, actor, ClassSchedule.disability.is_(disability))


async def is_class_in_section(db: AsyncSession, class_id: int, section_id: int) -> bool:
    """True when the class's course belongs to section_id. Unknown classes are never in a section."""
    return await ScopeResolver(db).section_for_class(class_id) == section_id


async def get_schedule(db: AsyncSession, actor: Actor, schedule_id: int) -> ScheduleResponse:
    return ScheduleResponse.model_validate(await _get_visible_schedule(db, actor, schedule_id))


async def _save_schedule_changes(
    db: AsyncSession, schedule: ClassSchedule, changes: Dict[str, Any]
) -> ScheduleWithConflictsResponse:
    # classroom_id / modality_id may be cleared explicitly; other fields keep their value when null.
    nullable = {"classroom_id", "modality_id"}
    merged: Dict[str, Any] = {}
    for field in SchedulePatch.model_fields:
        if field in changes and (changes[field] is not None or field in nullable):
            merged[field] = changes[field]
        else:
            merged[field] = getattr(schedule, field)
    merged["day"] = Weekday(merged["day"]).value

    academic_class = await db.get(AcademicClass, schedule.class_id)
    conflicts = await _schedule_conflicts(
        db, merged["classroom_id"], merged["day"], merged["start_time"], merged["end_time"],
        academic_class.semester_id, exclude_schedule_id=schedule.id,
    )
    for field, value in merged.items():
        setattr(schedule, field, value)
    await _commit(db, f"update schedule {schedule.id}")
    await db.refresh(schedule)
    return ScheduleWithConflictsResponse(
        schedule=ScheduleResponse.model_validate(schedule),
        conflicts=[ScheduleResponse.model_validate(s) for s in conflicts],
    )


async def update_schedule(
    db: AsyncSession, actor: Actor, schedule_id: int, payload: ScheduleCreate
) -> ScheduleWithConflictsResponse:
    """Replace every field of the schedule. A null classroom_id makes it remote."""
    schedule = await _get_visible_schedule(db, actor, schedule_id)
    return await _save_schedule_changes(db, schedule, payload.model_dump())


async def patch_schedule(
    db: AsyncSession, actor: Actor, schedule_id: int, fields: Dict[str, Any]
) -> ScheduleWithConflictsResponse:
    """Partial update. Unknown field names are rejected."""
    unknown = sorted(set(fields) - set(SchedulePatch.model_fields))
    if unknown:
        raise BadRequestError(f"Unknown schedule field(s): {', '.join(unknown)}")
    try:
        patch = SchedulePatch.model_validate(fields)
    except ValidationError as e:
        raise BadRequestError(f"Invalid schedule fields: {e.errors()[0]['msg']}")
    schedule = await _get_visible_schedule(db, actor, schedule_id)
    return await _save_schedule_changes(db, schedule, patch.model_dump(exclude_unset=True))


async def delete_schedule(db: AsyncSession, actor: Actor, schedule_id: int) -> None:
    schedule = await _get_visible_schedule(db, actor, schedule_id)
    await db.delete(schedule)
    await _commit(db, f"delete schedule {schedule_id}")
