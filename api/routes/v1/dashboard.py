"""Admin dashboard endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity, get_db, require_admin
from api.schemas.dashboard import ActivityResponse, DashboardStats
from api.services import activities as activity_service
from api.services import dashboard as dashboard_service

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats, summary="Dashboard Stats")
async def dashboard_stats(
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await dashboard_service.get_dashboard_stats(session)


@router.get(
    "/activities/recent",
    response_model=list[ActivityResponse],
    summary="Recent Activity",
)
async def recent_activities(
    limit: int = Query(10, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await activity_service.list_recent_activities(session, limit=limit)
