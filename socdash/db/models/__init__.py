# socdash/db/models/__init__.py
"""
Database models package
Imports all models for easy access
"""

# Import base classes and mixins
from socdash.db.models.base import Base, TimestampMixin, IntegerIDMixin

# Import all enums
from socdash.db.models.enums import (
    AlertSeverity, AlertStatus, IncidentSeverity, IncidentStatus,
    UserRole, ThreatLevel, SEVERITY_RANK, HIGH_IMPACT_SEVERITIES,
    AssetType, AssetCriticality, CRITICALITY_RANK
)

from socdash.db.models.user import User
from socdash.db.models.alert import Alert
from socdash.db.models.incident import Incident, IncidentAlert, IncidentComment
from socdash.db.models.inventory import Asset, Playbook, ComplianceFramework

__all__ = [
    # Base classes
    'Base', 'TimestampMixin', 'IntegerIDMixin',

    # Enums
    'AlertSeverity', 'AlertStatus', 'IncidentSeverity', 'IncidentStatus',
    'UserRole', 'ThreatLevel', 'SEVERITY_RANK', 'HIGH_IMPACT_SEVERITIES',
    'AssetType', 'AssetCriticality', 'CRITICALITY_RANK',

    # Models
    'User', 'Alert', 'Incident', 'IncidentAlert', 'IncidentComment',
    'Asset', 'Playbook', 'ComplianceFramework',
]
