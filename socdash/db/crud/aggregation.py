# socdash/db/crud/aggregation.py
"""
Read-only aggregates derived from the alert store.

Every function recomputes from current rows on each call; nothing is
cached between calls.
"""
from datetime import datetime, timedelta
from typing import Optional, List, Dict

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.core.config import settings
from socdash.db.crud.base import storage_read
from socdash.db.models import Alert, Incident
from socdash.db.models.base import utcnow
from socdash.db.models.enums import (
    AlertSeverity, IncidentStatus, ThreatLevel, SEVERITY_RANK, HIGH_IMPACT_SEVERITIES
)

_SEVERITY_BY_RANK = {rank: severity for severity, rank in SEVERITY_RANK.items()}


def classify_threat_level(
        count: int,
        yellow_threshold: Optional[int] = None,
        red_threshold: Optional[int] = None
) -> ThreatLevel:
    """Red above the red threshold, Yellow above the yellow one, else Green"""
    yellow = settings.THREAT_LEVEL_YELLOW_THRESHOLD if yellow_threshold is None else yellow_threshold
    red = settings.THREAT_LEVEL_RED_THRESHOLD if red_threshold is None else red_threshold
    if count > red:
        return ThreatLevel.RED
    if count > yellow:
        return ThreatLevel.YELLOW
    return ThreatLevel.GREEN


@storage_read
async def high_severity_count(db: AsyncSession, now: Optional[datetime] = None,
                              window_minutes: Optional[int] = None) -> int:
    now = now or utcnow()
    window_minutes = window_minutes or settings.THREAT_LEVEL_WINDOW_MINUTES
    result = await db.execute(
        select(func.count(Alert.id)).where(
            Alert.severity.in_(HIGH_IMPACT_SEVERITIES),
            Alert.created_at >= now - timedelta(minutes=window_minutes),
        )
    )
    return result.scalar_one()


async def threat_level(db: AsyncSession, now: Optional[datetime] = None) -> ThreatLevel:
    """Threat level from the Critical+High volume of the last rolling window"""
    return classify_threat_level(await high_severity_count(db, now))


@storage_read
async def geo_clusters(db: AsyncSession, window_hours: Optional[int] = None) -> List[Dict]:
    """
    Group geolocated alerts inside the window by (country, city, lat, long).

    Each cluster carries its alert count, the highest severity by fixed rank
    and the newest alert timestamp.
    """
    window_hours = window_hours or settings.GEO_WINDOW_HOURS
    rank = case(
        *[(Alert.severity == severity, value) for severity, value in SEVERITY_RANK.items()],
        else_=0,
    )
    stmt = (
        select(
            Alert.country_code,
            Alert.city,
            Alert.latitude,
            Alert.longitude,
            func.count(Alert.id).label("alert_count"),
            func.max(rank).label("max_rank"),
            func.max(Alert.created_at).label("latest_alert"),
        )
        .where(
            Alert.latitude.is_not(None),
            Alert.longitude.is_not(None),
            Alert.created_at >= utcnow() - timedelta(hours=window_hours),
        )
        .group_by(Alert.country_code, Alert.city, Alert.latitude, Alert.longitude)
        .order_by(func.count(Alert.id).desc(), Alert.country_code, Alert.city)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {
            "country_code": row.country_code,
            "city": row.city,
            "latitude": float(row.latitude),
            "longitude": float(row.longitude),
            "alert_count": row.alert_count,
            "max_severity": _SEVERITY_BY_RANK[row.max_rank],
            "latest_alert": row.latest_alert,
        }
        for row in rows
    ]


@storage_read
async def count_alerts_since(db: AsyncSession, window_hours: int) -> int:
    result = await db.execute(
        select(func.count(Alert.id)).where(Alert.created_at >= utcnow() - timedelta(hours=window_hours))
    )
    return result.scalar_one()


@storage_read
async def severity_breakdown(db: AsyncSession, window_hours: Optional[int] = None) -> Dict[str, int]:
    """Alert count per severity; every severity is present, zero when unseen"""
    stmt = select(Alert.severity, func.count(Alert.id)).group_by(Alert.severity)
    if window_hours:
        stmt = stmt.where(Alert.created_at >= utcnow() - timedelta(hours=window_hours))
    counts = {severity.value: 0 for severity in AlertSeverity}
    for severity, count in (await db.execute(stmt)).all():
        counts[severity.value] = count
    return counts


@storage_read
async def top_alert_types(db: AsyncSession, window_hours: Optional[int] = None,
                          limit: Optional[int] = None) -> List[Dict]:
    """Most frequent alert types, count descending then name ascending"""
    limit = limit or settings.TOP_ALERT_TYPES_LIMIT
    count = func.count(Alert.id).label("count")
    stmt = select(Alert.alert_type, count).group_by(Alert.alert_type)
    if window_hours:
        stmt = stmt.where(Alert.created_at >= utcnow() - timedelta(hours=window_hours))
    stmt = stmt.order_by(count.desc(), Alert.alert_type.asc()).limit(limit)
    return [{"alert_type": alert_type, "count": n} for alert_type, n in (await db.execute(stmt)).all()]


@storage_read
async def incident_status_breakdown(db: AsyncSession) -> Dict[str, int]:
    counts = {status.value: 0 for status in IncidentStatus}
    result = await db.execute(select(Incident.status, func.count(Incident.id)).group_by(Incident.status))
    for status, count in result.all():
        counts[status.value] = count
    return counts


@storage_read
async def alerts_timeline(db: AsyncSession, days: int = 7) -> List[Dict]:
    """Daily alert counts per severity for the last `days` days"""
    day = func.date(Alert.created_at).label("day")
    stmt = (
        select(day, Alert.severity, func.count(Alert.id))
        .where(Alert.created_at >= utcnow() - timedelta(days=days))
        .group_by(day, Alert.severity)
        .order_by(day, Alert.severity)
    )
    return [
        {"date": str(row[0]), "severity": row[1], "count": row[2]}
        for row in (await db.execute(stmt)).all()
    ]


async def dashboard_overview(db: AsyncSession) -> Dict:
    """Headline metrics for the dashboard landing page"""
    return {
        "metrics": {
            "alerts24h": await count_alerts_since(db, 24),
            "alerts7d": await count_alerts_since(db, 24 * 7),
            "alerts30d": await count_alerts_since(db, 24 * 30),
            "threatLevel": await threat_level(db),
        },
        "severityBreakdown": await severity_breakdown(db, 24),
        "incidentStatus": await incident_status_breakdown(db),
        "topAlertTypes": await top_alert_types(db, 24 * 7),
    }
