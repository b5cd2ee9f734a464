# socdash/db/crud/alert.py
from datetime import timedelta
from typing import Optional, List, Tuple, Union, Dict, Any

from loguru import logger
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.alerts import AlertCreate, AlertFilter
from socdash.core.config import settings
from socdash.core.locking import row_locks
from socdash.core.pagination import clamp_page_size
from socdash.core.status_rules import AlertStatusTransition
from socdash.db.crud.base import storage_read, storage_write, validate_draft, coerce_enum, rollback_and_reload
from socdash.db.models import Alert, User
from socdash.db.models.base import utcnow
from socdash.db.models.enums import AlertStatus
from socdash.exceptions.errors import NotFoundError, InvalidTransitionError, ValidationError


async def _get_by_idempotency_key(db: AsyncSession, key: str) -> Optional[Alert]:
    result = await db.execute(select(Alert).where(Alert.idempotency_key == key))
    return result.scalars().first()


@storage_write
async def _insert_alert(db: AsyncSession, draft: AlertCreate) -> Tuple[Alert, bool]:
    if draft.idempotency_key:
        existing = await _get_by_idempotency_key(db, draft.idempotency_key)
        if existing:
            logger.info(f"Alert resubmitted with idempotency key {draft.idempotency_key}, returning #{existing.id}")
            return existing, False

    alert = Alert(**draft.model_dump(), status=AlertStatus.NEW)
    db.add(alert)
    try:
        await db.commit()
    except IntegrityError:
        await rollback_and_reload(db)
        if not draft.idempotency_key:
            raise
        # Lost an insert race on the same key in another process
        existing = await _get_by_idempotency_key(db, draft.idempotency_key)
        if existing is None:
            raise
        return existing, False

    await db.refresh(alert)
    logger.info(f"Alert #{alert.id} stored: {alert.alert_type} ({alert.severity.value})")
    return alert, True


async def create_alert(
        db: AsyncSession,
        draft: Union[AlertCreate, Dict[str, Any]]
) -> Tuple[Alert, bool]:
    """
    Append an alert to the store.

    The draft is validated before anything is written. Returns the stored
    alert and whether it was newly created; a draft whose idempotency key
    was already used returns the original alert and False.
    """
    draft = validate_draft(AlertCreate, draft)
    if draft.idempotency_key:
        async with row_locks.hold("alerts:idempotency", draft.idempotency_key):
            return await _insert_alert(db, draft)
    return await _insert_alert(db, draft)


@storage_read
async def get_alert(db: AsyncSession, alert_id: int) -> Alert:
    """Get alert by id, raising NotFoundError when it does not exist"""
    result = await db.execute(select(Alert).where(Alert.id == alert_id))
    alert = result.scalars().first()
    if alert is None:
        raise NotFoundError("Alert", alert_id)
    return alert


def _filter_clauses(filters: AlertFilter) -> list:
    clauses = []
    if filters.severity is not None:
        clauses.append(Alert.severity == filters.severity)
    if filters.status is not None:
        clauses.append(Alert.status == filters.status)
    if filters.alert_type:
        clauses.append(Alert.alert_type == filters.alert_type)
    if filters.source_ip:
        clauses.append(Alert.source_ip.contains(filters.source_ip, autoescape=True))
    if filters.destination_ip:
        clauses.append(Alert.destination_ip.contains(filters.destination_ip, autoescape=True))
    if filters.time_range_hours:
        clauses.append(Alert.created_at >= utcnow() - timedelta(hours=filters.time_range_hours))
    if filters.search:
        clauses.append(
            or_(
                Alert.alert_type.icontains(filters.search, autoescape=True),
                Alert.description.icontains(filters.search, autoescape=True),
                Alert.source_ip.icontains(filters.search, autoescape=True),
            )
        )
    return clauses


@storage_read
async def query_alerts(
        db: AsyncSession,
        filters: Optional[AlertFilter] = None,
        page: int = 1,
        limit: Optional[int] = None
) -> Tuple[List[Alert], int]:
    """
    Filtered, paginated alert retrieval.

    Newest first, ties on created_at broken by id so equal timestamps page
    deterministically. The total is computed in the same statement so items
    and count come from one snapshot.
    """
    filters = filters or AlertFilter()
    page = max(1, page)
    limit = clamp_page_size(limit or settings.DEFAULT_PAGE_SIZE)
    clauses = _filter_clauses(filters)

    stmt = (
        select(Alert, func.count().over().label("total"))
        .where(*clauses)
        .order_by(Alert.created_at.desc(), Alert.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()

    if rows:
        return [row[0] for row in rows], rows[0][1]
    if page == 1:
        return [], 0

    # Page past the end: the window total is unavailable, count directly
    total = (await db.execute(select(func.count(Alert.id)).where(*clauses))).scalar_one()
    return [], total


@storage_write
async def _apply_status(
        db: AsyncSession,
        alert_id: int,
        new_status: AlertStatus,
        assigned_to: Optional[int],
        strict: bool
) -> Alert:
    result = await db.execute(
        select(Alert)
        .where(Alert.id == alert_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    alert = result.scalars().first()
    if alert is None:
        raise NotFoundError("Alert", alert_id)

    current = alert.status
    if not AlertStatusTransition.is_valid_transition(current, new_status, strict=strict):
        allowed = ", ".join(s.value for s in AlertStatusTransition.get_allowed_transitions(current, strict))
        raise InvalidTransitionError(current, new_status, f"allowed: {allowed}")

    if assigned_to is not None:
        assignee = await db.get(User, assigned_to)
        if assignee is None:
            raise NotFoundError("User", assigned_to)

    alert.status = new_status
    if new_status == AlertStatus.NEW:
        alert.assigned_to = None
    elif assigned_to is not None:
        alert.assigned_to = assigned_to

    if new_status == AlertStatus.RESOLVED:
        if current != AlertStatus.RESOLVED:
            alert.resolved_at = utcnow()
    else:
        alert.resolved_at = None

    await db.commit()
    await db.refresh(alert)
    logger.info(f"Alert #{alert_id} status {current.value} -> {new_status.value}")
    return alert


async def update_status(
        db: AsyncSession,
        alert_id: int,
        new_status: Union[AlertStatus, str],
        assigned_to: Optional[int] = None,
        strict: Optional[bool] = None
) -> Alert:
    """
    Change an alert's status and optionally its assignee.

    Writers to the same alert are serialized. Entering Resolved stamps
    resolved_at, leaving it clears it; moving back to New drops the assignee.
    """
    new_status = coerce_enum(AlertStatus, new_status, "status")
    if new_status == AlertStatus.NEW and assigned_to is not None:
        raise ValidationError("A New alert cannot have an assignee")
    if strict is None:
        strict = settings.STRICT_ALERT_TRANSITIONS

    async with row_locks.hold("alerts", alert_id):
        return await _apply_status(db, alert_id, new_status, assigned_to, strict)
