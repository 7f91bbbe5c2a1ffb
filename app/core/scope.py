"""
Role-scoped visibility.

visible() is a pure predicate over an actor and the ownership facts of an
entity. ScopeResolver loads those facts (course -> section, class -> section)
and memoises them for the lifetime of one request.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import Actor, AdminActor, SectionActor, TeacherActor
from app.core.models import AcademicClass, ClassSchedule, Course, TeacherAssignment

T = TypeVar("T")


@dataclass(frozen=True)
class Ownership:
    section_id: Optional[int] = None
    teacher_id: Optional[int] = None


def visible(actor: Actor, ownership: Ownership) -> bool:
    if isinstance(actor, AdminActor):
        return True
    if isinstance(actor, SectionActor):
        return ownership.section_id is not None and ownership.section_id == actor.section_id
    if isinstance(actor, TeacherActor):
        return ownership.teacher_id is not None and ownership.teacher_id == actor.teacher_id
    return False


class ScopeResolver:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._course_sections: Dict[int, Optional[int]] = {}
        self._class_courses: Dict[int, Optional[int]] = {}

    async def section_for_course(self, course_id: int) -> Optional[int]:
        if course_id not in self._course_sections:
            result = await self.db.execute(select(Course.section_id).where(Course.id == course_id))
            self._course_sections[course_id] = result.scalar_one_or_none()
        return self._course_sections[course_id]

    async def section_for_class(self, class_id: int) -> Optional[int]:
        if class_id not in self._class_courses:
            result = await self.db.execute(
                select(AcademicClass.course_id).where(AcademicClass.id == class_id)
            )
            self._class_courses[class_id] = result.scalar_one_or_none()
        course_id = self._class_courses[class_id]
        if course_id is None:
            return None
        return await self.section_for_course(course_id)

    async def class_ownership(self, academic_class: AcademicClass) -> Ownership:
        self._class_courses.setdefault(academic_class.id, academic_class.course_id)
        return Ownership(section_id=await self.section_for_course(academic_class.course_id))

    async def schedule_ownership(self, schedule: ClassSchedule) -> Ownership:
        return Ownership(section_id=await self.section_for_class(schedule.class_id))

    async def assignment_ownership(self, assignment: TeacherAssignment) -> Ownership:
        return Ownership(
            section_id=await self.section_for_class(assignment.class_id),
            teacher_id=assignment.teacher_id,
        )

    async def can_see_class(self, actor: Actor, academic_class: AcademicClass) -> bool:
        if isinstance(actor, AdminActor):
            return True
        return visible(actor, await self.class_ownership(academic_class))

    async def can_see_assignment(self, actor: Actor, assignment: TeacherAssignment) -> bool:
        if isinstance(actor, AdminActor):
            return True
        return visible(actor, await self.assignment_ownership(assignment))


async def filter_visible(
    actor: Actor,
    items: Iterable[T],
    ownership_of: Callable[[T], Awaitable[Ownership]],
) -> List[T]:
    """Keep the items the actor may see, in input order."""
    if isinstance(actor, AdminActor):
        return list(items)
    kept: List[T] = []
    for item in items:
        if visible(actor, await ownership_of(item)):
            kept.append(item)
    return kept
