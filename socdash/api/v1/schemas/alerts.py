# socdash/api/v1/schemas/alerts.py
import ipaddress
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from socdash.db.models.enums import AlertSeverity, AlertStatus


class AlertBase(BaseModel):
    """Fields shared by alert drafts and stored alerts"""
    alert_type: str = Field(..., min_length=1, max_length=255, description="Free-form alert category")
    severity: AlertSeverity = Field(..., description="Alert severity")
    source_ip: Optional[str] = Field(None, max_length=45, description="Source address")
    destination_ip: Optional[str] = Field(None, max_length=45, description="Destination address")
    source_port: Optional[int] = Field(None, ge=0, le=65535)
    destination_port: Optional[int] = Field(None, ge=0, le=65535)
    protocol: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, description="Free text description")
    raw_event: Optional[Any] = Field(None, description="Original event payload, stored verbatim")
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)
    city: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AlertCreate(AlertBase):
    """Alert draft submitted by an ingestion source"""
    idempotency_key: Optional[str] = Field(
        None, min_length=1, max_length=255, description="Resubmissions with the same key return the original alert"
    )

    @field_validator('source_ip', 'destination_ip')
    @classmethod
    def validate_ip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        ipaddress.ip_address(v)
        return v

    @field_validator('country_code')
    @classmethod
    def normalize_country(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class AlertResponse(AlertBase):
    """Stored alert"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: AlertStatus
    assigned_to: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None


class AlertIngestResult(AlertResponse):
    """Ingestion response: the stored alert plus whether it was a resubmission"""
    duplicate: bool = Field(False, description="True when an alert with the same idempotency key already existed")


class AlertStatusUpdate(BaseModel):
    """Operator status change, optionally (re)assigning the alert"""
    status: AlertStatus = Field(..., description="New alert status")
    assigned_to: Optional[int] = Field(None, description="User id to assign")


class AlertFilter(BaseModel):
    """Conjunction of optional predicates; an absent predicate is unconstrained"""
    severity: Optional[AlertSeverity] = None
    status: Optional[AlertStatus] = None
    alert_type: Optional[str] = None
    source_ip: Optional[str] = Field(None, description="Substring of the source address")
    destination_ip: Optional[str] = Field(None, description="Substring of the destination address")
    time_range_hours: Optional[int] = Field(None, ge=1, description="Only alerts created in the last N hours")
    search: Optional[str] = Field(None, description="Substring of alert_type, description or source_ip")


def alert_to_event(alert) -> Dict[str, Any]:
    """JSON-ready payload for the live channel"""
    return AlertResponse.model_validate(alert).model_dump(mode="json")
