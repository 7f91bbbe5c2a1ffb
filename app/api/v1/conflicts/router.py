from datetime import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.classes.schemas import ScheduleResponse
from app.auth.dependencies import get_actor
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.auth.schemas import Actor
from app.core.enums import Weekday
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ClassroomConflictResponse, ConflictCheckResponse, TeacherConflictResponse
from . import service

router = APIRouter(
    prefix="/api/v1/conflicts",
    tags=["conflicts"],
    dependencies=[Depends(require_roles(*ADMIN_OR_SECTION))],
)


@router.get("/check", response_model=ConflictCheckResponse)
async def check_conflicts(
    day: Weekday,
    start_time: time,
    end_time: time,
    classroom_id: Optional[int] = Query(None, description="Omit for remote modality"),
    exclude_class_id: Optional[int] = Query(None, description="Class whose own schedules are ignored"),
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
) -> ConflictCheckResponse:
    """Schedules a proposed slot would overlap. Read-only."""
    try:
        conflicts = await service.check_slot(
            db, classroom_id, day.value, start_time, end_time,
            exclude_class_id=exclude_class_id, semester_id=semester_id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ConflictCheckResponse(
        has_conflict=bool(conflicts),
        conflicts=[ScheduleResponse.model_validate(s) for s in conflicts],
    )


@router.get("/classrooms", response_model=List[ClassroomConflictResponse])
async def classroom_conflicts(
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassroomConflictResponse]:
    try:
        return await service.classroom_conflicts(db, actor, semester_id=semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/classrooms/{classroom_id}", response_model=List[ClassroomConflictResponse])
async def classroom_day_report(
    classroom_id: int,
    day: Weekday,
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassroomConflictResponse]:
    try:
        return await service.classroom_day_report(db, actor, classroom_id, day.value, semester_id=semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/teachers", response_model=List[TeacherConflictResponse])
async def teacher_conflicts(
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[TeacherConflictResponse]:
    """Teachers booked into overlapping classes on the same day."""
    try:
        return await service.teacher_conflicts(db, actor, semester_id=semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
