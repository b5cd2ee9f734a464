# socdash/db/models/alert.py
"""Security alert model"""
from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey, Index, DateTime, Float
from sqlalchemy.orm import relationship

from socdash.db.models.base import Base, TimestampMixin, IntegerIDMixin, enum_type
from socdash.db.models.enums import AlertSeverity, AlertStatus


class Alert(Base, IntegerIDMixin, TimestampMixin):
    """One observed security event. Rows are never deleted, only superseded by status."""
    __tablename__ = "alerts"

    alert_type = Column(String(255), nullable=False)
    severity = Column(enum_type(AlertSeverity, "alert_severity"), nullable=False)
    source_ip = Column(String(45), nullable=True)
    destination_ip = Column(String(45), nullable=True)
    source_port = Column(Integer, nullable=True)
    destination_port = Column(Integer, nullable=True)
    protocol = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    raw_event = Column(JSON, nullable=True)
    status = Column(enum_type(AlertStatus, "alert_status"), nullable=False, default=AlertStatus.NEW)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    idempotency_key = Column(String(255), nullable=True, unique=True)

    # Geolocation, present only when the source event carried it
    country_code = Column(String(2), nullable=True)
    city = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    assignee = relationship("User", foreign_keys=[assigned_to])
    incident_links = relationship("IncidentAlert", back_populates="alert", passive_deletes=True)

    __table_args__ = (
        Index('idx_alert_created', 'created_at', 'id'),
        Index('idx_alert_severity_created', 'severity', 'created_at'),
        Index('idx_alert_status', 'status'),
        Index('idx_alert_type', 'alert_type'),
        Index('idx_alert_geo', 'country_code', 'city', 'latitude', 'longitude'),
    )

    def __repr__(self):
        return f"<Alert id={self.id} type={self.alert_type} severity={self.severity}>"
