# socdash/services/ingestion.py
"""
Single write path for new alerts: store, then broadcast.

Publishing happens on the same coroutine right after the commit, so live
subscribers see alerts in the order they were stored by this process.
"""
from typing import Tuple, Union, Dict, Any

from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.alerts import AlertCreate, alert_to_event
from socdash.core import tracing
from socdash.db.crud import alert as alert_crud
from socdash.db.models import Alert
from socdash.realtime.broadcaster import Broadcaster

ALERTS_INGESTED = Counter(
    'socdash_alerts_ingested_total',
    'Alerts accepted by the ingestion path',
    ['severity', 'outcome']
)


async def ingest_alert(
        db: AsyncSession,
        draft: Union[AlertCreate, Dict[str, Any]],
        broadcaster: Broadcaster
) -> Tuple[Alert, bool]:
    """
    Append an alert and fan it out to live sessions.

    Returns (alert, duplicate). A resubmitted idempotency key returns the
    original alert and is not broadcast a second time.
    """
    alert, created = await alert_crud.create_alert(db, draft)
    if not created:
        ALERTS_INGESTED.labels(severity=alert.severity.value, outcome="duplicate").inc()
        tracing.info("Duplicate alert submission", alert_id=alert.id, idempotency_key=alert.idempotency_key)
        return alert, True

    ALERTS_INGESTED.labels(severity=alert.severity.value, outcome="created").inc()
    delivered = broadcaster.publish_alert(alert_to_event(alert))
    tracing.info(
        f"Alert #{alert.id} ingested",
        alert_type=alert.alert_type,
        severity=alert.severity.value,
        live_sessions=delivered,
    )
    return alert, False
