# socdash/auth/security.py
"""
Principal token handling.

Tokens are issued by the external auth service; this side only verifies
them. create_access_token mints tokens in the same format for scripts and
tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from loguru import logger

from socdash.api.v1.schemas.auth import Principal
from socdash.core.config import settings
from socdash.db.models.enums import UserRole

import uuid

DEFAULT_TOKEN_LIFETIME = timedelta(hours=8)


def create_access_token(
        subject: str,
        role: UserRole,
        user_id: Optional[int] = None,
        expires_delta: Optional[timedelta] = None
) -> str:
    """
    Mint a principal token carrying sub, user_id and role.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_LIFETIME)
    to_encode = {
        "sub": subject,
        "user_id": user_id,
        "role": UserRole(role).value,
        "exp": expire,
        "jti": str(uuid.uuid4()),
        "type": "access",
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decodes a JWT token and returns its payload.
    Raises JWTError if the token is invalid or expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decoding error: {e}")
        raise


def principal_from_token(token: str) -> Principal:
    """Build the Principal carried by a token; raises JWTError when it is unusable"""
    payload = decode_token(token)
    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        raise JWTError("Token is missing the sub or role claim")
    try:
        return Principal(subject=subject, user_id=payload.get("user_id"), role=UserRole(role))
    except ValueError as e:
        raise JWTError(f"Unknown role in token: {role}") from e
