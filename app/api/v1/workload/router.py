from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.semesters import service as semester_service
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.core.exceptions import NotFoundError, ServiceError
from app.db.session import get_db

from .schemas import AvailabilityResponse, ExtraHoursRequest, ExtraHoursWarning, TeacherWorkloadResponse
from . import service

router = APIRouter(
    prefix="/api/v1/workload",
    tags=["workload"],
    dependencies=[Depends(require_roles(*ADMIN_OR_SECTION))],
)


async def _semester_or_current(db: AsyncSession, semester_id: Optional[int]) -> Optional[int]:
    """Explicit semester, else the current one, else None (all semesters)."""
    if semester_id is not None:
        return semester_id
    try:
        return await semester_service.get_current_semester_id(db)
    except NotFoundError:
        return None


@router.get("/teachers", response_model=List[TeacherWorkloadResponse])
async def workload_report_all(
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
) -> List[TeacherWorkloadResponse]:
    return await service.workload_report_all(db, await _semester_or_current(db, semester_id))


@router.get("/teachers/{teacher_id}", response_model=TeacherWorkloadResponse)
async def workload_report(
    teacher_id: int,
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
) -> TeacherWorkloadResponse:
    try:
        return await service.workload_report(db, teacher_id, await _semester_or_current(db, semester_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/teachers/{teacher_id}/extra-hours-warning", response_model=ExtraHoursWarning)
async def extra_hours_warning(
    teacher_id: int,
    payload: ExtraHoursRequest,
    db: AsyncSession = Depends(get_db),
) -> ExtraHoursWarning:
    """How far the teacher would go over max_hours if proposed_hours were assigned. Never blocks."""
    try:
        return await service.extra_hours_warning(
            db, teacher_id, payload.proposed_hours, await _semester_or_current(db, None)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/teachers/{teacher_id}/available-for-extra-hours", response_model=AvailabilityResponse)
async def available_for_extra_hours(
    teacher_id: int,
    db: AsyncSession = Depends(get_db),
) -> AvailabilityResponse:
    try:
        available = await service.available_for_extra_hours(
            db, teacher_id, await _semester_or_current(db, None)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AvailabilityResponse(teacher_id=teacher_id, available_for_extra_hours=available)
