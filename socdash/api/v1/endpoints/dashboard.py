# socdash/api/v1/endpoints/dashboard.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.analytics import DashboardOverview, TimelinePoint
from socdash.api.v1.schemas.auth import Principal
from socdash.auth.dependencies import require_operator
from socdash.core import tracing
from socdash.db.crud import aggregation
from socdash.db.database import get_db

router = APIRouter()


@router.get("/overview", response_model=DashboardOverview)
async def dashboard_overview(
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Alert volumes, threat level, severity and incident breakdowns"""
    overview = await aggregation.dashboard_overview(db)
    tracing.debug("Dashboard overview computed", requester=principal.subject)
    return overview


@router.get("/alerts-timeline", response_model=List[TimelinePoint])
async def alerts_timeline(
        days: int = Query(7, ge=1, le=90, description="Number of days to cover"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    return await aggregation.alerts_timeline(db, days)
