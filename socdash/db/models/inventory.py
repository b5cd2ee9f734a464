"""Asset inventory, response playbooks and compliance frameworks"""
from sqlalchemy import Column, Integer, String, Text, JSON, Boolean, Float, ForeignKey, Index, DateTime
from sqlalchemy.orm import relationship

from socdash.db.models.base import Base, TimestampMixin, IntegerIDMixin, enum_type, utcnow
from socdash.db.models.enums import AssetType, AssetCriticality


class Asset(Base, IntegerIDMixin, TimestampMixin):
    __tablename__ = "assets"

    name = Column(String(255), nullable=False)
    ip_address = Column(String(45), nullable=True)
    asset_type = Column(enum_type(AssetType, "asset_type"), nullable=False)
    operating_system = Column(String(255), nullable=True)
    criticality = Column(enum_type(AssetCriticality, "asset_criticality"), nullable=False)
    owner = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    last_seen = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    vulnerability_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_asset_type_criticality', 'asset_type', 'criticality'),
        Index('idx_asset_active', 'is_active'),
    )

    def __repr__(self):
        return f"<Asset name={self.name} type={self.asset_type} criticality={self.criticality}>"


class Playbook(Base, IntegerIDMixin, TimestampMixin):
    """Ordered response procedure for one kind of incident"""
    __tablename__ = "playbooks"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    incident_type = Column(String(255), nullable=True)
    steps = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Playbook name={self.name} steps={len(self.steps or [])}>"


class ComplianceFramework(Base, IntegerIDMixin):
    __tablename__ = "compliance_frameworks"

    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    total_controls = Column(Integer, nullable=False, default=0)
    passed_controls = Column(Integer, nullable=False, default=0)
    failed_controls = Column(Integer, nullable=False, default=0)
    compliance_percentage = Column(Float, nullable=False, default=0.0)
    last_assessment = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<ComplianceFramework name={self.name} {self.compliance_percentage}%>"
