# socdash/db/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, Index

from socdash.db.models.base import Base, TimestampMixin, IntegerIDMixin, enum_type
from socdash.db.models.enums import UserRole


class User(Base, IntegerIDMixin, TimestampMixin):
    """Operator account; credentials live with the external auth service"""
    __tablename__ = "users"

    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(enum_type(UserRole, "user_role"), nullable=False, default=UserRole.SOC_ANALYST)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_user_role_active', 'role', 'is_active'),
    )

    def __repr__(self):
        return f"<User username={self.username} role={self.role}>"
