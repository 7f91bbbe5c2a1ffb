from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.sections.service import get_section_id_for_user
from app.auth.schemas import Actor, AdminActor, CurrentUser, SectionActor, TeacherActor
from app.core.enums import UserRole
from app.core.models import Teacher


async def get_teacher_id_for_user(db: AsyncSession, user_id: int) -> Optional[int]:
    result = await db.execute(select(Teacher.id).where(Teacher.user_id == user_id))
    return result.scalar_one_or_none()


async def resolve_actor(db: AsyncSession, current_user: CurrentUser) -> Optional[Actor]:
    """Map the caller to the actor used for scoping. None when the role has no backing row."""
    if current_user.role == UserRole.ADMIN:
        return AdminActor()
    if current_user.role == UserRole.SECTION:
        section_id = await get_section_id_for_user(db, current_user.id)
        return SectionActor(section_id=section_id) if section_id is not None else None
    if current_user.role == UserRole.TEACHER:
        teacher_id = await get_teacher_id_for_user(db, current_user.id)
        return TeacherActor(teacher_id=teacher_id) if teacher_id is not None else None
    return None
