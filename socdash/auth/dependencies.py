# socdash/auth/dependencies.py
from typing import Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from loguru import logger

from socdash.api.v1.schemas.auth import Principal
from socdash.auth.security import principal_from_token
from socdash.core.config import settings
from socdash.db.models.enums import UserRole
from socdash.exceptions.errors import ForbiddenError

# Token extraction only; the token endpoint belongs to the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL)

ALL_ROLES = tuple(UserRole)


async def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """
    Resolve the request's principal from its bearer token
    """
    try:
        principal = principal_from_token(token)
    except JWTError as e:
        logger.warning(f"Rejected principal token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Principal authenticated | sub={principal.subject} | role={principal.role.value}")
    return principal


def is_role_allowed(role: UserRole, allowed_roles: Iterable[UserRole]) -> bool:
    """Pure role gate: True when `role` is one of `allowed_roles`"""
    return role in set(allowed_roles)


def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.
    """
    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not is_role_allowed(principal.role, allowed_roles):
            raise ForbiddenError(
                f"Role '{principal.role.value}' is not allowed; requires one of: "
                + ", ".join(role.value for role in allowed_roles)
            )
        return principal

    return role_checker


require_admin = require_roles(UserRole.ADMINISTRATOR)
require_operator = require_roles(*ALL_ROLES)
