# socdash/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi.util import get_remote_address

from socdash.api.v1.schemas.auth import Principal
from socdash.api.v1.schemas.users import UserResponse
from socdash.auth.dependencies import require_admin
from socdash.core import tracing
from socdash.core.pagination import PaginationParams, PaginatedResponse
from socdash.db.crud import user as user_crud
from socdash.db.database import get_db

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def list_users(
        request: Request,
        pagination: PaginationParams = Depends(),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_admin)
):
    """Operator accounts; administrators only"""
    tracing.info("User list requested", requester=principal.subject, ip=get_remote_address(request))
    users, total = await user_crud.list_users(db, page=pagination.page, limit=pagination.limit)
    return PaginatedResponse.build(
        [UserResponse.model_validate(u) for u in users], total, pagination.page, pagination.limit
    )
