from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.enums import Weekday


class ScheduleCreate(BaseModel):
    """One weekly slot. classroom_id is omitted for remote modality."""

    classroom_id: Optional[int] = None
    day: Weekday
    start_time: time
    end_time: time = Field(..., description="Must be after start_time")
    modality_id: Optional[int] = None
    disability: bool = False


class SchedulePatch(BaseModel):
    classroom_id: Optional[int] = None
    day: Optional[Weekday] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    modality_id: Optional[int] = None
    disability: Optional[bool] = None


class ScheduleResponse(BaseModel):
    id: int
    class_id: int
    classroom_id: Optional[int] = None
    day: str
    start_time: time
    end_time: time
    modality_id: Optional[int] = None
    disability: bool

    class Config:
        from_attributes = True


class ScheduleWithConflictsResponse(BaseModel):
    """Saved schedule plus the same-classroom schedules it overlaps (empty when none)."""

    schedule: ScheduleResponse
    conflicts: List[ScheduleResponse] = Field(default_factory=list)


class ClassCreate(BaseModel):
    """Create class in the current semester, optionally with its schedules."""

    course_id: int
    section: Optional[int] = Field(None, description="Group number within the course")
    capacity: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    observation: Optional[str] = Field(None, max_length=500)
    status_id: Optional[int] = None
    schedules: List[ScheduleCreate] = Field(default_factory=list)


class ClassUpdate(BaseModel):
    course_id: Optional[int] = None
    section: Optional[int] = None
    capacity: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    observation: Optional[str] = Field(None, max_length=500)
    status_id: Optional[int] = None


class ClassResponse(BaseModel):
    id: int
    course_id: int
    semester_id: int
    section: Optional[int] = None
    capacity: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    observation: Optional[str] = None
    status_id: Optional[int] = None
    schedules: List[ScheduleResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class CreateClassResponse(BaseModel):
    academic_class: ClassResponse
    conflicts: List[ScheduleResponse] = Field(
        default_factory=list,
        description=(
            "Schedules in the same classroom/day overlapping the new ones, "
            "including new schedules of the request that overlap each other."
        ),
    )


class ClassUtilizationStats(BaseModel):
    semester_id: int
    class_count: int
    total_capacity: int
    average_capacity: float
