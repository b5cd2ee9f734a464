# socdash/api/v1/schemas/auth.py
from typing import Optional

from pydantic import BaseModel, Field

from socdash.db.models.enums import UserRole


class Principal(BaseModel):
    """
    Authenticated identity attached to a request by the external auth service.
    """
    subject: str = Field(..., description="Username from the token's 'sub' claim")
    user_id: Optional[int] = Field(None, description="Operator id, when the token carries one")
    role: UserRole
