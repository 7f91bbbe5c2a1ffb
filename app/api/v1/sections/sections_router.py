from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_actor
from app.auth.rbac import require_roles
from app.auth.schemas import Actor
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PlanningClosedResponse, PlanningStatusStats, SectionPlanningResponse
from . import service

router = APIRouter(prefix="/api/v1/sections", tags=["sections"])


@router.post(
    "/me/close-planning",
    response_model=SectionPlanningResponse,
    dependencies=[Depends(require_roles(UserRole.SECTION))],
)
async def close_planning(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> SectionPlanningResponse:
    """Mark the caller's section planning as finished. Reopened automatically when a new semester starts."""
    try:
        return await service.close_planning(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/me/planning-closed",
    response_model=PlanningClosedResponse,
    dependencies=[Depends(require_roles(UserRole.SECTION))],
)
async def is_planning_closed(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> PlanningClosedResponse:
    try:
        return await service.is_planning_closed(db, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/planning-status",
    response_model=PlanningStatusStats,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def planning_status_stats(db: AsyncSession = Depends(get_db)) -> PlanningStatusStats:
    """Sections with planning closed vs open. Admin only."""
    return await service.planning_status_stats(db)
