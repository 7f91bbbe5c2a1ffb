from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_actor
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.auth.schemas import Actor
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    DuplicateAllRequest,
    DuplicateSelectedRequest,
    DuplicateSelectedResponse,
    DuplicationResponse,
    PreviewResponse,
)
from . import service

router = APIRouter(
    prefix="/api/v1/planning",
    tags=["planning-duplication"],
    dependencies=[Depends(require_roles(*ADMIN_OR_SECTION))],
)


@router.post("/duplicate", response_model=DuplicationResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_all(
    payload: DuplicateAllRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> DuplicationResponse:
    """Copy all classes (and schedules) of the source semester into the target. All-or-nothing."""
    try:
        return await service.duplicate_all(db, actor, payload.source_semester_id, payload.target_semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/duplicate-selected",
    response_model=DuplicateSelectedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_selected(
    payload: DuplicateSelectedRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> DuplicateSelectedResponse:
    try:
        return await service.duplicate_selected(
            db, actor, payload.source_semester_id, payload.class_ids, payload.target_semester_id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/preview/{semester_id}", response_model=PreviewResponse)
async def preview(
    semester_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> PreviewResponse:
    try:
        return await service.preview(db, actor, semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/apply-to-current/{source_semester_id}",
    response_model=DuplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_current(
    source_semester_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> DuplicationResponse:
    """Copy the source semester's planning into the current semester."""
    try:
        return await service.apply_to_current(db, actor, source_semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
