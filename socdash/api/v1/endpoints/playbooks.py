# socdash/api/v1/endpoints/playbooks.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.api.v1.schemas.auth import Principal
from socdash.api.v1.schemas.inventory import PlaybookResponse
from socdash.auth.dependencies import require_operator
from socdash.db.crud import inventory
from socdash.db.database import get_db

router = APIRouter()


@router.get("/", response_model=List[PlaybookResponse])
async def list_playbooks(
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_operator)
):
    """Active incident response playbooks, newest first"""
    rows = await inventory.list_playbooks(db)
    return [
        PlaybookResponse.model_validate(playbook).model_copy(update={"created_by_name": username})
        for playbook, username in rows
    ]
