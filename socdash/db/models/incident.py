# socdash/db/models/incident.py
"""Incident, alert linkage and comment models"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from socdash.db.models.base import Base, TimestampMixin, IntegerIDMixin, enum_type, utcnow
from socdash.db.models.enums import IncidentSeverity, IncidentStatus


class Incident(Base, IntegerIDMixin, TimestampMixin):
    """Operator-declared investigation grouping one or more alerts"""
    __tablename__ = "incidents"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    severity = Column(enum_type(IncidentSeverity, "incident_severity"), nullable=False)
    status = Column(enum_type(IncidentStatus, "incident_status"), nullable=False, default=IncidentStatus.NEW)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    root_cause = Column(Text, nullable=True)
    remediation_steps = Column(Text, nullable=True)
    # Denormalized count of rows in incident_alerts for this incident
    alert_count = Column(Integer, nullable=False, default=0)

    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    assignee = relationship("User", foreign_keys=[assignee_id])
    reporter = relationship("User", foreign_keys=[reporter_id])
    alert_links = relationship(
        "IncidentAlert", back_populates="incident", cascade="all, delete-orphan", passive_deletes=True
    )
    comments = relationship(
        "IncidentComment", back_populates="incident", cascade="all, delete-orphan", passive_deletes=True,
        order_by="IncidentComment.id"
    )

    __table_args__ = (
        Index('idx_incident_status', 'status'),
        Index('idx_incident_severity', 'severity'),
        Index('idx_incident_assignee', 'assignee_id'),
        Index('idx_incident_created', 'created_at'),
    )

    def __repr__(self):
        return f"<Incident id={self.id} title={self.title} status={self.status}>"


class IncidentAlert(Base):
    """Unique (incident, alert) link"""
    __tablename__ = "incident_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(Integer, ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    incident = relationship("Incident", back_populates="alert_links")
    alert = relationship("Alert", back_populates="incident_links")

    __table_args__ = (
        UniqueConstraint('incident_id', 'alert_id', name='uq_incident_alert'),
        Index('idx_incident_alert_alert', 'alert_id'),
    )


class IncidentComment(Base):
    """Append-only audit entry on an incident"""
    __tablename__ = "incident_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(Integer, ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True)
    author = Column(String(255), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    incident = relationship("Incident", back_populates="comments")

    def __repr__(self):
        return f"<IncidentComment incident_id={self.incident_id} author={self.author}>"
