# socdash/db/crud/incident.py
from typing import Optional, List, Tuple, Union, Dict, Any

from loguru import logger
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.incidents import IncidentCreate
from socdash.core.config import settings
from socdash.core.locking import row_locks
from socdash.core.pagination import clamp_page_size
from socdash.core.status_rules import IncidentStatusTransition
from socdash.db.crud.base import storage_read, storage_write, validate_draft, coerce_enum, rollback_and_reload
from socdash.db.models import Alert, Incident, IncidentAlert, IncidentComment, User
from socdash.db.models.base import utcnow
from socdash.db.models.enums import IncidentStatus, IncidentSeverity
from socdash.exceptions.errors import NotFoundError, InvalidTransitionError, ValidationError

RESOLUTION_STATUSES = (IncidentStatus.RESOLVED, IncidentStatus.CLOSED)


@storage_write
async def create_incident(
        db: AsyncSession,
        draft: Union[IncidentCreate, Dict[str, Any]],
        reporter_id: Optional[int] = None
) -> Incident:
    """Declare a new incident with no linked alerts"""
    draft = validate_draft(IncidentCreate, draft)
    if draft.assignee_id is not None and await db.get(User, draft.assignee_id) is None:
        raise NotFoundError("User", draft.assignee_id)
    if reporter_id is not None and await db.get(User, reporter_id) is None:
        # Principal not registered locally; keep the incident unattributed
        logger.debug(f"Reporter {reporter_id} has no local user record")
        reporter_id = None

    incident = Incident(
        title=draft.title,
        description=draft.description,
        severity=draft.severity,
        status=IncidentStatus.ASSIGNED if draft.assignee_id else IncidentStatus.NEW,
        assignee_id=draft.assignee_id,
        reporter_id=reporter_id,
        alert_count=0,
    )
    db.add(incident)
    await db.commit()
    await db.refresh(incident)
    logger.info(f"Incident #{incident.id} declared: {incident.title}")
    return incident


@storage_read
async def get_incident(db: AsyncSession, incident_id: int) -> Incident:
    result = await db.execute(select(Incident).where(Incident.id == incident_id))
    incident = result.scalars().first()
    if incident is None:
        raise NotFoundError("Incident", incident_id)
    return incident


@storage_read
async def get_linked_alert_ids(db: AsyncSession, incident_id: int) -> List[int]:
    result = await db.execute(
        select(IncidentAlert.alert_id)
        .where(IncidentAlert.incident_id == incident_id)
        .order_by(IncidentAlert.alert_id)
    )
    return list(result.scalars().all())


@storage_read
async def list_incidents(
        db: AsyncSession,
        status: Optional[IncidentStatus] = None,
        severity: Optional[IncidentSeverity] = None,
        assignee_id: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None
) -> Tuple[List[Incident], int]:
    """Incidents newest first, with the same paging rules as alerts"""
    limit = clamp_page_size(limit or settings.DEFAULT_PAGE_SIZE)
    clauses = []
    if status is not None:
        clauses.append(Incident.status == status)
    if severity is not None:
        clauses.append(Incident.severity == severity)
    if assignee_id is not None:
        clauses.append(Incident.assignee_id == assignee_id)
    if search:
        clauses.append(
            or_(
                Incident.title.icontains(search, autoescape=True),
                Incident.description.icontains(search, autoescape=True),
            )
        )

    total = (await db.execute(select(func.count(Incident.id)).where(*clauses))).scalar_one()
    result = await db.execute(
        select(Incident)
        .where(*clauses)
        .order_by(Incident.created_at.desc(), Incident.id.desc())
        .offset((max(1, page) - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def _lock_incident(db: AsyncSession, incident_id: int) -> Incident:
    result = await db.execute(
        select(Incident)
        .where(Incident.id == incident_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    incident = result.scalars().first()
    if incident is None:
        raise NotFoundError("Incident", incident_id)
    return incident


def _ensure_open(incident: Incident, operation: str) -> None:
    if incident.status in IncidentStatusTransition.TERMINAL:
        raise InvalidTransitionError(incident.status, None, f"cannot {operation} a closed incident")


@storage_write
async def _link(db: AsyncSession, incident_id: int, alert_id: int) -> Tuple[Incident, bool]:
    incident = await _lock_incident(db, incident_id)
    _ensure_open(incident, "attach alerts to")
    if await db.get(Alert, alert_id) is None:
        raise NotFoundError("Alert", alert_id)

    existing = await db.execute(
        select(IncidentAlert.id).where(
            IncidentAlert.incident_id == incident_id,
            IncidentAlert.alert_id == alert_id,
        )
    )
    if existing.first() is not None:
        await db.commit()
        return incident, False

    db.add(IncidentAlert(incident_id=incident_id, alert_id=alert_id))
    await db.execute(
        update(Incident)
        .where(Incident.id == incident_id)
        .values(alert_count=Incident.alert_count + 1, updated_at=utcnow())
    )
    try:
        await db.commit()
    except IntegrityError:
        # Link was created concurrently by another process
        await rollback_and_reload(db)
        return incident, False

    await db.refresh(incident)
    logger.info(f"Alert #{alert_id} attached to incident #{incident_id} ({incident.alert_count} linked)")
    return incident, True


async def attach_alert(db: AsyncSession, incident_id: int, alert_id: int) -> Tuple[Incident, bool]:
    """
    Link an alert to an incident.

    Idempotent: a pair that is already linked is left alone and the second
    element of the result is False. The link row and the alert_count bump
    commit together.
    """
    async with row_locks.hold("incidents", incident_id):
        return await _link(db, incident_id, alert_id)


@storage_write
async def _unlink(db: AsyncSession, incident_id: int, alert_id: int) -> Tuple[Incident, bool]:
    incident = await _lock_incident(db, incident_id)
    _ensure_open(incident, "detach alerts from")

    result = await db.execute(
        delete(IncidentAlert).where(
            IncidentAlert.incident_id == incident_id,
            IncidentAlert.alert_id == alert_id,
        )
    )
    if result.rowcount == 0:
        await db.commit()
        return incident, False

    await db.execute(
        update(Incident)
        .where(Incident.id == incident_id)
        .values(alert_count=Incident.alert_count - 1, updated_at=utcnow())
    )
    await db.commit()
    await db.refresh(incident)
    logger.info(f"Alert #{alert_id} detached from incident #{incident_id} ({incident.alert_count} linked)")
    return incident, True


async def detach_alert(db: AsyncSession, incident_id: int, alert_id: int) -> Tuple[Incident, bool]:
    """Remove a link; detaching an unlinked pair is a no-op"""
    async with row_locks.hold("incidents", incident_id):
        return await _unlink(db, incident_id, alert_id)


@storage_write
async def _apply_transition(
        db: AsyncSession,
        incident_id: int,
        new_status: IncidentStatus,
        root_cause: Optional[str],
        remediation_steps: Optional[str]
) -> Incident:
    incident = await _lock_incident(db, incident_id)
    current = incident.status
    if not IncidentStatusTransition.is_valid_transition(current, new_status):
        raise InvalidTransitionError(current, new_status, "Closed is terminal")

    incident.status = new_status
    if new_status == IncidentStatus.RESOLVED:
        if current != IncidentStatus.RESOLVED:
            incident.resolved_at = utcnow()
    elif new_status == IncidentStatus.CLOSED:
        if incident.resolved_at is None:
            incident.resolved_at = utcnow()
    else:
        incident.resolved_at = None

    if root_cause is not None:
        incident.root_cause = root_cause
    if remediation_steps is not None:
        incident.remediation_steps = remediation_steps

    await db.commit()
    await db.refresh(incident)
    logger.info(f"Incident #{incident_id} status {current.value} -> {new_status.value}")
    return incident


async def transition_status(
        db: AsyncSession,
        incident_id: int,
        new_status: Union[IncidentStatus, str],
        root_cause: Optional[str] = None,
        remediation_steps: Optional[str] = None
) -> Incident:
    """
    Move an incident through its lifecycle.

    Closed incidents never change again. resolved_at is stamped on entering
    Resolved, kept through Closed and cleared if the incident is reopened.
    Resolution details are only accepted together with Resolved or Closed.
    """
    new_status = coerce_enum(IncidentStatus, new_status, "status")
    if (root_cause is not None or remediation_steps is not None) and new_status not in RESOLUTION_STATUSES:
        raise ValidationError("root_cause and remediation_steps can only be set when resolving or closing")

    async with row_locks.hold("incidents", incident_id):
        return await _apply_transition(db, incident_id, new_status, root_cause, remediation_steps)


@storage_write
async def add_comment(db: AsyncSession, incident_id: int, author: str, text: str) -> IncidentComment:
    """Append an audit comment; comments are never edited or removed"""
    if not text or not text.strip():
        raise ValidationError("Comment text cannot be empty")
    if await db.get(Incident, incident_id) is None:
        raise NotFoundError("Incident", incident_id)

    comment = IncidentComment(incident_id=incident_id, author=author, comment=text)
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    logger.debug(f"Comment #{comment.id} added to incident #{incident_id} by {author}")
    return comment


@storage_read
async def list_comments(db: AsyncSession, incident_id: int) -> List[IncidentComment]:
    if await db.get(Incident, incident_id) is None:
        raise NotFoundError("Incident", incident_id)
    result = await db.execute(
        select(IncidentComment)
        .where(IncidentComment.incident_id == incident_id)
        .order_by(IncidentComment.id)
    )
    return list(result.scalars().all())
