from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from agency.api.dependencies import get_dashboard_service
from agency.core.auth import verify_api_key
from agency.schemas.dashboard import DashboardStats
from agency.services.dashboard_service import DashboardService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_api_key)])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    dashboard: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> DashboardStats:
    """Counters for the dashboard landing page."""
    return await dashboard.stats()
