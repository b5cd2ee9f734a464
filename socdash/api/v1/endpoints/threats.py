# socdash/api/v1/endpoints/threats.py
"""Threat intelligence views derived from recent alerts"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.analytics import GeoCluster, ThreatLevelResponse
from socdash.api.v1.schemas.auth import Principal
from socdash.auth.dependencies import require_operator
from socdash.core.config import settings
from socdash.db.crud import aggregation
from socdash.db.database import get_db

router = APIRouter()


@router.get("/geographic", response_model=List[GeoCluster])
async def geographic_threats(
        window_hours: Optional[int] = Query(None, alias="windowHours", ge=1, le=24 * 90),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Geolocated alerts clustered by location over a sliding window (default 24h)"""
    return await aggregation.geo_clusters(db, window_hours)


@router.get("/level", response_model=ThreatLevelResponse)
async def current_threat_level(
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    count = await aggregation.high_severity_count(db)
    return ThreatLevelResponse(
        threat_level=aggregation.classify_threat_level(count),
        high_severity_count=count,
        window_minutes=settings.THREAT_LEVEL_WINDOW_MINUTES,
    )
