# socdash/api/v1/endpoints/assets.py
"""Asset inventory"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.auth import Principal
from socdash.api.v1.schemas.inventory import AssetResponse, AssetFilter
from socdash.auth.dependencies import require_operator
from socdash.db.crud import inventory
from socdash.db.database import get_db
from socdash.db.models.enums import AssetType, AssetCriticality

router = APIRouter()


@router.get("/", response_model=List[AssetResponse])
async def list_assets(
        asset_type: Optional[AssetType] = Query(None, alias="assetType", description="Filter by asset type"),
        criticality: Optional[AssetCriticality] = Query(None, description="Filter by criticality"),
        owner: Optional[str] = Query(None, description="Owner substring"),
        search: Optional[str] = Query(None, description="Search in name, address and operating system"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Active assets, most critical first"""
    filters = AssetFilter(asset_type=asset_type, criticality=criticality, owner=owner, search=search)
    return await inventory.list_assets(db, filters)
