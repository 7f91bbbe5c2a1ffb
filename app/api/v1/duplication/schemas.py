from typing import List, Optional

from pydantic import BaseModel, Field

from app.api.v1.classes.schemas import ClassResponse


class DuplicateAllRequest(BaseModel):
    """Copy every class of the source semester (with schedules) into the target semester."""

    source_semester_id: int
    target_semester_id: int


class DuplicateSelectedRequest(BaseModel):
    source_semester_id: int
    class_ids: List[int] = Field(..., min_length=1)
    target_semester_id: Optional[int] = Field(None, description="Defaults to the current semester")


class DuplicationResponse(BaseModel):
    target_semester_id: int
    classes: List[ClassResponse]


class DuplicateSelectedResponse(BaseModel):
    target_semester_id: int
    applied: int


class PreviewResponse(BaseModel):
    """What a duplication of semester_id would copy. Nothing is written."""

    semester_id: int
    class_count: int
    schedule_count: int
    classes: List[ClassResponse]
