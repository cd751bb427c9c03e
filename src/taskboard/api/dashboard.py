"""Dashboard API route."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api import operations as ops
from taskboard.auth.dependencies import Identity
from taskboard.auth.roles import role_gate
from taskboard.db.engine import get_db
from taskboard.schemas.dashboard import DashboardStats
from taskboard.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard")


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    identity: Identity = Depends(role_gate(ops.DASHBOARD_STATS)),
    db: AsyncSession = Depends(get_db),
):
    """Counts and rates over everything the caller can see."""
    return await DashboardService(db).stats(identity)
