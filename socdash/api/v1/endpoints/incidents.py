# socdash/api/v1/endpoints/incidents.py
"""Incident management endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.auth import Principal
from socdash.api.v1.schemas.incidents import (
    IncidentCreate, IncidentResponse, IncidentDetail, IncidentAlertLink, IncidentLinkResult,
    IncidentTransition, CommentCreate, CommentResponse
)
from socdash.auth.dependencies import require_operator
from socdash.core import tracing
from socdash.core.pagination import PaginationParams, PaginatedResponse
from socdash.db.crud import incident as incident_crud
from socdash.db.database import get_db
from socdash.db.models.enums import IncidentSeverity, IncidentStatus

router = APIRouter()


async def _detail(db: AsyncSession, incident) -> IncidentDetail:
    detail = IncidentDetail.model_validate(incident)
    detail.alert_ids = await incident_crud.get_linked_alert_ids(db, incident.id)
    return detail


@router.post("/", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
        incident_data: IncidentCreate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Declare a new incident"""
    incident = await incident_crud.create_incident(db, incident_data, reporter_id=principal.user_id)
    tracing.info("Incident created", incident_id=incident.id, reporter=principal.subject)
    return incident


@router.get("/", response_model=PaginatedResponse[IncidentResponse])
async def list_incidents(
        pagination: PaginationParams = Depends(),
        status_filter: Optional[IncidentStatus] = Query(None, alias="status", description="Filter by status"),
        severity: Optional[IncidentSeverity] = Query(None, description="Filter by severity"),
        assignee: Optional[int] = Query(None, description="Filter by assignee id"),
        search: Optional[str] = Query(None, description="Search in title and description"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    items, total = await incident_crud.list_incidents(
        db,
        status=status_filter,
        severity=severity,
        assignee_id=assignee,
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )
    return PaginatedResponse.build(
        [IncidentResponse.model_validate(i) for i in items], total, pagination.page, pagination.limit
    )


@router.get("/{incident_id}", response_model=IncidentDetail)
async def get_incident(
        incident_id: int,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    incident = await incident_crud.get_incident(db, incident_id)
    return await _detail(db, incident)


@router.post("/{incident_id}/attach", response_model=IncidentLinkResult)
async def attach_alert(
        incident_id: int,
        link: IncidentAlertLink,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Link an alert to the incident; repeating the call changes nothing"""
    incident, changed = await incident_crud.attach_alert(db, incident_id, link.alert_id)
    tracing.info(
        "Alert attached" if changed else "Alert already attached",
        incident_id=incident_id,
        alert_id=link.alert_id,
        requester=principal.subject,
    )
    return IncidentLinkResult(
        incident_id=incident_id, alert_id=link.alert_id, changed=changed, alert_count=incident.alert_count
    )


@router.post("/{incident_id}/detach", response_model=IncidentLinkResult)
async def detach_alert(
        incident_id: int,
        link: IncidentAlertLink,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    incident, changed = await incident_crud.detach_alert(db, incident_id, link.alert_id)
    tracing.info(
        "Alert detached" if changed else "Alert was not attached",
        incident_id=incident_id,
        alert_id=link.alert_id,
        requester=principal.subject,
    )
    return IncidentLinkResult(
        incident_id=incident_id, alert_id=link.alert_id, changed=changed, alert_count=incident.alert_count
    )


@router.post("/{incident_id}/transition", response_model=IncidentDetail)
async def transition_incident(
        incident_id: int,
        transition: IncidentTransition,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    incident = await incident_crud.transition_status(
        db,
        incident_id,
        transition.status,
        root_cause=transition.root_cause,
        remediation_steps=transition.remediation_steps,
    )
    tracing.info(
        "Incident status changed",
        incident_id=incident_id,
        status=incident.status.value,
        requester=principal.subject,
    )
    return await _detail(db, incident)


@router.get("/{incident_id}/comments", response_model=List[CommentResponse])
async def list_comments(
        incident_id: int,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    return await incident_crud.list_comments(db, incident_id)


@router.post("/{incident_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
        incident_id: int,
        comment: CommentCreate,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    return await incident_crud.add_comment(db, incident_id, principal.subject, comment.comment)
