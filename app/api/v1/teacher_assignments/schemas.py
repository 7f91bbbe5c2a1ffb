from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.api.v1.workload.schemas import ExtraHoursWarning


class TeacherAssignmentCreate(BaseModel):
    """Assign a teacher to a class. Created PENDING in the current semester."""

    teacher_id: int
    class_id: int
    work_hours: int = Field(..., ge=0)
    observation: Optional[str] = Field(None, max_length=500)


class TeacherAssignmentUpdate(BaseModel):
    work_hours: Optional[int] = Field(None, ge=0)
    observation: Optional[str] = Field(None, max_length=500)


class DecisionRequest(BaseModel):
    observation: Optional[str] = Field(None, max_length=500)


class TeachingDatesUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TeacherAssignmentResponse(BaseModel):
    id: int
    teacher_id: int
    class_id: int
    semester_id: int
    work_hours: int
    full_time_extra_hours: int
    adjunct_extra_hours: int
    status: str
    decision: Optional[bool] = None
    observation: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CreateTeacherAssignmentResponse(BaseModel):
    assignment: TeacherAssignmentResponse
    warning: Optional[ExtraHoursWarning] = Field(
        None,
        description="Present when accepting this assignment would take the teacher over max_hours.",
    )


class AssignmentStatistics(BaseModel):
    semester_id: int
    total: int
    pending: int
    accepted: int
    rejected: int
    acceptance_rate: float  # accepted / decided, 0 when nothing is decided
