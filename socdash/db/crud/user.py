from typing import Optional, List, Tuple

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.core.config import settings
from socdash.core.pagination import clamp_page_size
from socdash.db.crud.base import storage_read, storage_write, coerce_enum
from socdash.db.models import User
from socdash.db.models.enums import UserRole


@storage_read
async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


@storage_read
async def list_users(db: AsyncSession, page: int = 1, limit: Optional[int] = None) -> Tuple[List[User], int]:
    """Operator accounts ordered by username"""
    limit = clamp_page_size(limit or settings.DEFAULT_PAGE_SIZE)
    total = (await db.execute(select(func.count(User.id)))).scalar_one()
    result = await db.execute(
        select(User).order_by(User.username).offset((max(1, page) - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total


@storage_write
async def create_user(db: AsyncSession, username: str, email: str, role=UserRole.SOC_ANALYST) -> User:
    """
    Register an operator locally so alerts and incidents can reference it.
    Credentials stay with the external auth service.
    """
    user = User(username=username, email=email, role=coerce_enum(UserRole, role, "role"), is_active=True)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"User created: {username} ({user.role.value})")
    return user
