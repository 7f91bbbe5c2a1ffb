from typing import Optional

from pydantic import BaseModel, Field


class ExtraHoursRequest(BaseModel):
    proposed_hours: int = Field(..., ge=0, description="Hours the caller intends to assign")


class ExtraHoursWarning(BaseModel):
    """Overbooking figures for a prospective assignment. excess_hours is 0 when it fits."""

    teacher_id: int
    current_assigned: int
    max_hours: int
    proposed_hours: int
    excess_hours: int


class AvailabilityResponse(BaseModel):
    teacher_id: int
    available_for_extra_hours: bool


class TeacherWorkloadResponse(BaseModel):
    teacher_id: int
    semester_id: Optional[int] = None
    assigned_hours: int
    max_hours: int
    available_hours: int
    exceeds_capacity: bool
