from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_roles
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import SemesterCreate, SemesterResponse
from . import service

router = APIRouter(
    prefix="/api/v1/semesters",
    tags=["semesters"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "",
    response_model=SemesterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_semester(
    payload: SemesterCreate,
    db: AsyncSession = Depends(get_db),
) -> SemesterResponse:
    """Create a semester and make it the current one. Reopens planning for all sections. Admin only."""
    try:
        return await service.create_semester(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[SemesterResponse])
async def list_semesters(db: AsyncSession = Depends(get_db)) -> List[SemesterResponse]:
    return await service.list_semesters(db)


@router.get("/current", response_model=SemesterResponse)
async def get_current_semester(db: AsyncSession = Depends(get_db)) -> SemesterResponse:
    try:
        return await service.get_current_semester(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/past", response_model=List[SemesterResponse])
async def list_past_semesters(db: AsyncSession = Depends(get_db)) -> List[SemesterResponse]:
    """All semesters except the current one. Source candidates for duplication."""
    try:
        return await service.list_past_semesters(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/by-period", response_model=Optional[SemesterResponse])
async def get_semester_by_year_and_period(
    year: int = Query(...),
    period: int = Query(...),
    db: AsyncSession = Depends(get_db),
) -> Optional[SemesterResponse]:
    return await service.get_semester_by_year_and_period(db, year, period)


@router.get("/{semester_id}", response_model=SemesterResponse)
async def get_semester(semester_id: int, db: AsyncSession = Depends(get_db)) -> SemesterResponse:
    try:
        return await service.get_semester(db, semester_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
