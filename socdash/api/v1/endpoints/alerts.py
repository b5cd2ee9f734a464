# socdash/api/v1/endpoints/alerts.py
"""Alert ingestion and retrieval endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.alerts import (
    AlertCreate, AlertResponse, AlertIngestResult, AlertStatusUpdate, AlertFilter
)
from socdash.api.v1.schemas.auth import Principal
from socdash.auth.dependencies import require_operator
from socdash.core import tracing
from socdash.core.config import settings
from socdash.core.pagination import PaginationParams, PaginatedResponse
from socdash.db.crud import alert as alert_crud
from socdash.db.database import get_db
from socdash.db.models.enums import AlertSeverity, AlertStatus
from socdash.middleware.rate_limiting import limiter
from socdash.realtime.broadcaster import Broadcaster
from socdash.realtime.dependencies import get_broadcaster
from socdash.services.ingestion import ingest_alert

router = APIRouter()


@router.post("/", response_model=AlertIngestResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.INGEST_RATE_LIMIT)
async def create_alert(
        request: Request,
        response: Response,
        alert_data: AlertCreate,
        idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
        db: AsyncSession = Depends(get_db),
        broadcaster: Broadcaster = Depends(get_broadcaster),
        principal: Principal = Depends(require_operator)
):
    """Ingest an alert and push it to live sessions"""
    if idempotency_key and not alert_data.idempotency_key:
        alert_data = alert_data.model_copy(update={"idempotency_key": idempotency_key})

    alert, duplicate = await ingest_alert(db, alert_data, broadcaster)
    if duplicate:
        response.status_code = status.HTTP_200_OK

    result = AlertIngestResult.model_validate(alert)
    result.duplicate = duplicate
    return result


@router.get("/", response_model=PaginatedResponse[AlertResponse])
async def list_alerts(
        pagination: PaginationParams = Depends(),
        severity: Optional[AlertSeverity] = Query(None, description="Filter by severity"),
        status_filter: Optional[AlertStatus] = Query(None, alias="status", description="Filter by status"),
        alert_type: Optional[str] = Query(None, alias="alertType", description="Exact alert type"),
        source_ip: Optional[str] = Query(None, alias="sourceIp", description="Source address substring"),
        destination_ip: Optional[str] = Query(None, alias="destinationIp", description="Destination address substring"),
        time_range: Optional[int] = Query(None, alias="timeRange", ge=1, description="Only the last N hours"),
        search: Optional[str] = Query(None, description="Search in type, description and source address"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """List alerts newest first"""
    filters = AlertFilter(
        severity=severity,
        status=status_filter,
        alert_type=alert_type,
        source_ip=source_ip,
        destination_ip=destination_ip,
        time_range_hours=time_range,
        search=search,
    )
    items, total = await alert_crud.query_alerts(db, filters, page=pagination.page, limit=pagination.limit)
    tracing.debug("Alerts listed", total=total, page=pagination.page, requester=principal.subject)
    return PaginatedResponse.build(
        [AlertResponse.model_validate(a) for a in items], total, pagination.page, pagination.limit
    )


@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(
        alert_id: int,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    return await alert_crud.get_alert(db, alert_id)


@router.post("/{alert_id}/status", response_model=AlertResponse)
async def update_alert_status(
        alert_id: int,
        update: AlertStatusUpdate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Move an alert through its lifecycle, optionally assigning it"""
    alert = await alert_crud.update_status(db, alert_id, update.status, assigned_to=update.assigned_to)
    tracing.info(
        "Alert status updated",
        alert_id=alert_id,
        status=alert.status.value,
        requester=principal.subject,
    )
    return alert
