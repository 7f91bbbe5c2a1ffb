from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_actor
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.auth.schemas import Actor
from app.core.enums import Weekday
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ScheduleCreate, ScheduleResponse, ScheduleWithConflictsResponse
from . import service

router = APIRouter(
    prefix="/api/v1/schedules",
    tags=["schedules"],
    dependencies=[Depends(require_roles(*ADMIN_OR_SECTION))],
)


@router.get("/by-classroom/{classroom_id}", response_model=List[ScheduleResponse])
async def list_schedules_by_classroom(
    classroom_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ScheduleResponse]:
    return await service.list_schedules_by_classroom(db, actor, classroom_id)


@router.get("/by-day/{day}", response_model=List[ScheduleResponse])
async def list_schedules_by_day(
    day: Weekday,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ScheduleResponse]:
    return await service.list_schedules_by_day(db, actor, day)


@router.get("/by-disability", response_model=List[ScheduleResponse])
async def list_schedules_by_disability(
    disability: bool = Query(True),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ScheduleResponse]:
    """Schedules with (or, with disability=false, without) accommodations."""
    return await service.list_schedules_by_disability(db, actor, disability)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ScheduleResponse:
    try:
        return await service.get_schedule(db, actor, schedule_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{schedule_id}", response_model=ScheduleWithConflictsResponse)
async def update_schedule(
    schedule_id: int,
    payload: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ScheduleWithConflictsResponse:
    """Replace the slot. The class's own schedules are never reported as conflicts."""
    try:
        return await service.update_schedule(db, actor, schedule_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{schedule_id}", response_model=ScheduleWithConflictsResponse)
async def patch_schedule(
    schedule_id: int,
    fields: Dict[str, Any] = Body(..., examples=[{"classroom_id": 7, "start_time": "09:00:00"}]),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ScheduleWithConflictsResponse:
    try:
        return await service.patch_schedule(db, actor, schedule_id, fields)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> Response:
    try:
        await service.delete_schedule(db, actor, schedule_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
