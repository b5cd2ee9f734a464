# socdash/api/v1/endpoints/compliance.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.auth import Principal
from socdash.api.v1.schemas.inventory import ComplianceFrameworkResponse
from socdash.auth.dependencies import require_operator
from socdash.db.crud import inventory
from socdash.db.database import get_db

router = APIRouter()


@router.get("/", response_model=List[ComplianceFrameworkResponse])
async def list_compliance_frameworks(
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Active compliance frameworks with their latest control scores"""
    return await inventory.list_compliance_frameworks(db)
