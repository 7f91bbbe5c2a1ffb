from datetime import time
from typing import List

from pydantic import BaseModel

from app.api.v1.classes.schemas import ScheduleResponse


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicts: List[ScheduleResponse]


class ClassroomConflictResponse(BaseModel):
    """Schedules in one classroom and day that all overlap each other."""

    classroom_id: int
    day: str
    conflict_start_time: time
    conflict_end_time: time
    conflicting_class_ids: List[int]
    schedules: List[ScheduleResponse]


class TeacherConflictResponse(BaseModel):
    """Schedules of classes assigned to one teacher that overlap on the same day."""

    teacher_id: int
    day: str
    conflict_start_time: time
    conflict_end_time: time
    conflicting_class_ids: List[int]
    schedules: List[ScheduleResponse]
