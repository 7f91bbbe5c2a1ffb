from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_actor
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.auth.schemas import Actor
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    ClassUtilizationStats,
    CreateClassResponse,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleWithConflictsResponse,
)
from . import service

router = APIRouter(
    prefix="/api/v1/classes",
    tags=["classes"],
    dependencies=[Depends(require_roles(*ADMIN_OR_SECTION))],
)


@router.post("", response_model=CreateClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> CreateClassResponse:
    """Create class in the current semester. Schedules overlapping existing ones are listed in `conflicts`."""
    try:
        return await service.create_class(db, actor, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    semester_id: Optional[int] = Query(None),
    course_id: Optional[int] = Query(None),
    section: Optional[int] = Query(None, description="Group number within the course"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassResponse]:
    return await service.list_classes(db, actor, semester_id=semester_id, course_id=course_id, section=section)


@router.get("/current", response_model=List[ClassResponse])
async def list_current_semester_classes(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassResponse]:
    try:
        return await service.list_current_semester_classes(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/without-classroom", response_model=List[ClassResponse])
async def list_classes_without_classroom(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassResponse]:
    try:
        return await service.list_classes_without_classroom(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/without-teacher", response_model=List[ClassResponse])
async def list_classes_without_teacher(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ClassResponse]:
    """Current-semester classes that no teacher has accepted yet."""
    try:
        return await service.list_classes_without_teacher(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/stats", response_model=ClassUtilizationStats)
async def utilization_stats(
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ClassUtilizationStats:
    try:
        return await service.utilization_stats(db, actor, semester_id=semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ClassResponse:
    try:
        return await service.get_class(db, actor, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ClassResponse:
    try:
        return await service.update_class(db, actor, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> Response:
    """Delete class; its schedules and teacher assignments go with it."""
    try:
        await service.delete_class(db, actor, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{class_id}/schedules",
    response_model=ScheduleWithConflictsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_schedule(
    class_id: int,
    payload: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ScheduleWithConflictsResponse:
    try:
        return await service.add_schedule(db, actor, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{class_id}/schedules", response_model=List[ScheduleResponse])
async def list_schedules(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[ScheduleResponse]:
    try:
        return await service.list_schedules(db, actor, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
