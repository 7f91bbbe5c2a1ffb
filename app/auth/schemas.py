from typing import Literal, Union

from pydantic import BaseModel

from app.core.enums import UserRole


class CurrentUser(BaseModel):
    """Authenticated caller as read from the access token."""

    id: int
    role: UserRole


class AdminActor(BaseModel):
    kind: Literal["admin"] = "admin"


class SectionActor(BaseModel):
    """Section owner; sees classes whose course belongs to section_id."""

    kind: Literal["section"] = "section"
    section_id: int


class TeacherActor(BaseModel):
    """Teacher; sees only assignments that reference teacher_id."""

    kind: Literal["teacher"] = "teacher"
    teacher_id: int


Actor = Union[AdminActor, SectionActor, TeacherActor]
