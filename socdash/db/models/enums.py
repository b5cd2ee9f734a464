# socdash/db/models/enums.py
import enum


class AlertSeverity(str, enum.Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFORMATIONAL = "Informational"


# Fixed rank used wherever a "maximum" severity is computed
SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 5,
    AlertSeverity.HIGH: 4,
    AlertSeverity.MEDIUM: 3,
    AlertSeverity.LOW: 2,
    AlertSeverity.INFORMATIONAL: 1,
}

HIGH_IMPACT_SEVERITIES = (AlertSeverity.CRITICAL, AlertSeverity.HIGH)


class AlertStatus(str, enum.Enum):
    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    FALSE_POSITIVE = "False Positive"


class IncidentSeverity(str, enum.Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class IncidentStatus(str, enum.Enum):
    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class UserRole(str, enum.Enum):
    ADMINISTRATOR = "Administrator"
    SOC_ANALYST = "SOC Analyst"
    SOC_MANAGER = "SOC Manager"


class ThreatLevel(str, enum.Enum):
    GREEN = "Green"
    YELLOW = "Yellow"
    RED = "Red"


class AssetType(str, enum.Enum):
    SERVER = "Server"
    ENDPOINT = "Endpoint"
    NETWORK_DEVICE = "Network Device"
    CLOUD_RESOURCE = "Cloud Resource"


class AssetCriticality(str, enum.Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


CRITICALITY_RANK = {
    AssetCriticality.CRITICAL: 4,
    AssetCriticality.HIGH: 3,
    AssetCriticality.MEDIUM: 2,
    AssetCriticality.LOW: 1,
}
