# socdash/db/crud/inventory.py
"""
Reference data served alongside alerts: the asset inventory, incident
response playbooks and compliance framework scores. Only active rows are
listed.
"""
from typing import Optional, List, Tuple, Union, Dict, Any

from loguru import logger
from sqlalchemy import select, case, or_
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.inventory import AssetCreate, AssetFilter, PlaybookCreate, ComplianceFrameworkCreate
from socdash.db.crud.base import storage_read, storage_write, validate_draft
from socdash.db.models import Asset, Playbook, ComplianceFramework, User
from socdash.db.models.enums import CRITICALITY_RANK
from socdash.exceptions.errors import ValidationError


def compliance_percentage(passed: int, total: int) -> float:
    """Share of passed controls, two decimals; 0.0 when nothing was assessed"""
    if total <= 0:
        return 0.0
    return round(passed / total * 100, 2)


@storage_write
async def create_asset(db: AsyncSession, draft: Union[AssetCreate, Dict[str, Any]]) -> Asset:
    draft = validate_draft(AssetCreate, draft)
    asset = Asset(**draft.model_dump(), is_active=True)
    db.add(asset)
    await db.commit()
    await db.refresh(asset)
    logger.info(f"Asset registered: {asset.name} ({asset.criticality.value})")
    return asset


@storage_read
async def list_assets(db: AsyncSession, filters: Optional[AssetFilter] = None) -> List[Asset]:
    """Active assets, most critical first, then by name"""
    filters = filters or AssetFilter()
    clauses = [Asset.is_active.is_(True)]
    if filters.asset_type is not None:
        clauses.append(Asset.asset_type == filters.asset_type)
    if filters.criticality is not None:
        clauses.append(Asset.criticality == filters.criticality)
    if filters.owner:
        clauses.append(Asset.owner.icontains(filters.owner, autoescape=True))
    if filters.search:
        clauses.append(
            or_(
                Asset.name.icontains(filters.search, autoescape=True),
                Asset.ip_address.icontains(filters.search, autoescape=True),
                Asset.operating_system.icontains(filters.search, autoescape=True),
            )
        )

    rank = case(
        *[(Asset.criticality == criticality, value) for criticality, value in CRITICALITY_RANK.items()],
        else_=0,
    )
    result = await db.execute(select(Asset).where(*clauses).order_by(rank.desc(), Asset.name.asc()))
    return list(result.scalars().all())


@storage_write
async def create_playbook(
        db: AsyncSession,
        draft: Union[PlaybookCreate, Dict[str, Any]],
        created_by: Optional[int] = None
) -> Playbook:
    draft = validate_draft(PlaybookCreate, draft)
    if created_by is not None and await db.get(User, created_by) is None:
        logger.debug(f"Playbook author {created_by} has no local user record")
        created_by = None

    playbook = Playbook(**draft.model_dump(), created_by=created_by, is_active=True)
    db.add(playbook)
    await db.commit()
    await db.refresh(playbook)
    logger.info(f"Playbook created: {playbook.name} ({len(playbook.steps)} steps)")
    return playbook


@storage_read
async def list_playbooks(db: AsyncSession) -> List[Tuple[Playbook, Optional[str]]]:
    """Active playbooks newest first, each paired with its author's username"""
    result = await db.execute(
        select(Playbook, User.username)
        .outerjoin(User, Playbook.created_by == User.id)
        .where(Playbook.is_active.is_(True))
        .order_by(Playbook.created_at.desc(), Playbook.id.desc())
    )
    return [(playbook, username) for playbook, username in result.all()]


@storage_write
async def create_compliance_framework(
        db: AsyncSession,
        draft: Union[ComplianceFrameworkCreate, Dict[str, Any]]
) -> ComplianceFramework:
    """Record an assessed framework; the percentage is derived from the control counts"""
    draft = validate_draft(ComplianceFrameworkCreate, draft)
    if draft.passed_controls + draft.failed_controls > draft.total_controls:
        raise ValidationError("passed_controls + failed_controls cannot exceed total_controls")

    framework = ComplianceFramework(
        **draft.model_dump(),
        compliance_percentage=compliance_percentage(draft.passed_controls, draft.total_controls),
        is_active=True,
    )
    db.add(framework)
    await db.commit()
    await db.refresh(framework)
    logger.info(f"Compliance framework {framework.name}: {framework.compliance_percentage}%")
    return framework


@storage_read
async def list_compliance_frameworks(db: AsyncSession) -> List[ComplianceFramework]:
    result = await db.execute(
        select(ComplianceFramework)
        .where(ComplianceFramework.is_active.is_(True))
        .order_by(ComplianceFramework.name)
    )
    return list(result.scalars().all())
