# socdash/api/v1/schemas/incidents.py
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from socdash.db.models.enums import IncidentSeverity, IncidentStatus


class IncidentBase(BaseModel):
    """Base schema for incident"""
    title: str = Field(..., min_length=1, max_length=255, description="Incident title")
    description: Optional[str] = Field(None, description="Incident description")
    severity: IncidentSeverity = Field(..., description="Incident severity")


class IncidentCreate(IncidentBase):
    """Schema for declaring an incident"""
    assignee_id: Optional[int] = Field(None, description="User id of the assignee")


class IncidentResponse(IncidentBase):
    """Schema for incident response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: IncidentStatus
    assignee_id: Optional[int] = None
    reporter_id: Optional[int] = None
    alert_count: int
    root_cause: Optional[str] = None
    remediation_steps: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None


class IncidentDetail(IncidentResponse):
    """Incident with the ids of its linked alerts"""
    alert_ids: List[int] = Field(default_factory=list)


class IncidentAlertLink(BaseModel):
    """Attach/detach request"""
    alert_id: int = Field(..., ge=1)


class IncidentLinkResult(BaseModel):
    """Outcome of attach/detach; changed is False for idempotent no-ops"""
    incident_id: int
    alert_id: int
    changed: bool
    alert_count: int


class IncidentTransition(BaseModel):
    """Status transition, with resolution details when resolving or closing"""
    status: IncidentStatus = Field(..., description="New incident status")
    root_cause: Optional[str] = Field(None, description="Only accepted when resolving or closing")
    remediation_steps: Optional[str] = Field(None, description="Only accepted when resolving or closing")


class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, description="Comment text")


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    incident_id: int
    author: str
    comment: str
    created_at: datetime
