from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_actor, get_current_user
from app.auth.rbac import ADMIN_OR_SECTION, require_roles
from app.auth.schemas import Actor
from app.core.enums import AssignmentStatus, UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    AssignmentStatistics,
    CreateTeacherAssignmentResponse,
    DecisionRequest,
    TeacherAssignmentCreate,
    TeacherAssignmentResponse,
    TeacherAssignmentUpdate,
    TeachingDatesUpdate,
)
from . import service

router = APIRouter(
    prefix="/api/v1/teacher-assignments",
    tags=["teacher-assignments"],
    dependencies=[Depends(get_current_user)],
)

_manage = [Depends(require_roles(*ADMIN_OR_SECTION))]
_decide = [Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))]


@router.post(
    "",
    response_model=CreateTeacherAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=_manage,
)
async def create_assignment(
    payload: TeacherAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> CreateTeacherAssignmentResponse:
    """Assign a teacher to a class (PENDING). 409 if the pair already exists."""
    try:
        return await service.create(db, actor, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[TeacherAssignmentResponse])
async def list_assignments(
    teacher_id: Optional[int] = Query(None),
    class_id: Optional[int] = Query(None),
    status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[TeacherAssignmentResponse]:
    """Filter by one of teacher_id, class_id or status; without filters, the current semester."""
    try:
        if teacher_id is not None:
            return await service.list_for_teacher(db, actor, teacher_id)
        if class_id is not None:
            return await service.list_for_class(db, actor, class_id)
        if status_filter is not None:
            return await service.list_by_status(db, actor, status_filter)
        return await service.list_current_semester(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, dependencies=_manage)
async def delete_assignment_by_pair(
    teacher_id: int = Query(...),
    class_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> Response:
    try:
        await service.delete_by_pair(db, actor, teacher_id, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=List[TeacherAssignmentResponse])
async def list_current_semester(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[TeacherAssignmentResponse]:
    try:
        return await service.list_current_semester(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/current/pending", response_model=List[TeacherAssignmentResponse])
async def list_pending_current_semester(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[TeacherAssignmentResponse]:
    try:
        return await service.list_pending_current_semester(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/statistics", response_model=AssignmentStatistics)
async def statistics(
    semester_id: Optional[int] = Query(None, description="Defaults to the current semester"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> AssignmentStatistics:
    try:
        return await service.statistics(db, actor, semester_id=semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/by-pair", response_model=TeacherAssignmentResponse)
async def get_assignment_by_pair(
    teacher_id: int = Query(...),
    class_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    try:
        return await service.get_by_pair(db, actor, teacher_id, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{assignment_id}", response_model=TeacherAssignmentResponse)
async def get_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    try:
        return await service.get(db, actor, assignment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{assignment_id}", response_model=TeacherAssignmentResponse, dependencies=_manage)
async def update_assignment(
    assignment_id: int,
    payload: TeacherAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    try:
        return await service.update(db, actor, assignment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{assignment_id}/accept", response_model=TeacherAssignmentResponse, dependencies=_decide)
async def accept_assignment(
    assignment_id: int,
    payload: Optional[DecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    """Teacher accepts their own assignment (admins may act for them)."""
    try:
        return await service.decide(
            db, actor, assignment_id, True, payload.observation if payload else None
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{assignment_id}/reject", response_model=TeacherAssignmentResponse, dependencies=_decide)
async def reject_assignment(
    assignment_id: int,
    payload: Optional[DecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    try:
        return await service.decide(
            db, actor, assignment_id, False, payload.observation if payload else None
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{assignment_id}/dates", response_model=TeacherAssignmentResponse, dependencies=_manage)
async def update_teaching_dates(
    assignment_id: int,
    payload: TeachingDatesUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> TeacherAssignmentResponse:
    try:
        return await service.update_teaching_dates(db, actor, assignment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=_manage)
async def delete_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> Response:
    try:
        await service.delete(db, actor, assignment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
