from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, Enum
from socdash.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_type(enum_cls, name: str) -> Enum:
    """Enum column storing the display value ("In Progress") rather than the member name"""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class IntegerIDMixin:
    """Monotonically increasing integer primary key"""
    id = Column(Integer, primary_key=True, autoincrement=True)
