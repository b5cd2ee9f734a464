# socdash/api/v1/schemas/users.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from socdash.db.models.enums import UserRole


class UserResponse(BaseModel):
    """
    Operator account as listed to administrators.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None
