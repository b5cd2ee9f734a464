# socdash/api/v1/schemas/analytics.py
from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from socdash.db.models.enums import AlertSeverity, ThreatLevel


class GeoCluster(BaseModel):
    """Alerts grouped by location over a sliding window"""
    country_code: str | None = None
    city: str | None = None
    latitude: float
    longitude: float
    alert_count: int
    max_severity: AlertSeverity
    latest_alert: datetime


class ThreatLevelResponse(BaseModel):
    threat_level: ThreatLevel
    high_severity_count: int = Field(..., description="Critical+High alerts inside the window")
    window_minutes: int


class AlertTypeCount(BaseModel):
    alert_type: str
    count: int


class TimelinePoint(BaseModel):
    date: str
    severity: AlertSeverity
    count: int


class DashboardMetrics(BaseModel):
    alerts24h: int
    alerts7d: int
    alerts30d: int
    threatLevel: ThreatLevel


class DashboardOverview(BaseModel):
    metrics: DashboardMetrics
    severityBreakdown: Dict[str, int]
    incidentStatus: Dict[str, int]
    topAlertTypes: List[AlertTypeCount]
