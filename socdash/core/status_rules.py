# socdash/core/status_rules.py
"""
Status transition rules for alerts and incidents
"""
from socdash.db.models.enums import AlertStatus, IncidentStatus


class AlertStatusTransition:
    """
    Alert lifecycle guard.

    In strict mode an alert has to be picked up (Assigned or In Progress)
    before it can be closed out as Resolved or False Positive. Loose mode
    accepts any status change.
    """

    VALID_TRANSITIONS = {
        AlertStatus.NEW: [AlertStatus.ASSIGNED, AlertStatus.IN_PROGRESS],
        AlertStatus.ASSIGNED: [
            AlertStatus.NEW, AlertStatus.IN_PROGRESS, AlertStatus.RESOLVED, AlertStatus.FALSE_POSITIVE
        ],
        AlertStatus.IN_PROGRESS: [
            AlertStatus.NEW, AlertStatus.ASSIGNED, AlertStatus.RESOLVED, AlertStatus.FALSE_POSITIVE
        ],
        AlertStatus.RESOLVED: [AlertStatus.ASSIGNED, AlertStatus.IN_PROGRESS],
        AlertStatus.FALSE_POSITIVE: [AlertStatus.ASSIGNED, AlertStatus.IN_PROGRESS],
    }

    @classmethod
    def is_valid_transition(cls, current: AlertStatus, new: AlertStatus, strict: bool = True) -> bool:
        if not strict or current == new:
            return True
        return new in cls.VALID_TRANSITIONS.get(current, [])

    @classmethod
    def get_allowed_transitions(cls, current: AlertStatus, strict: bool = True) -> list:
        if not strict:
            return [status for status in AlertStatus if status != current]
        return list(cls.VALID_TRANSITIONS.get(current, []))


class IncidentStatusTransition:
    """Incident lifecycle guard: Closed is terminal, everything else is open"""

    TERMINAL = {IncidentStatus.CLOSED}

    @classmethod
    def is_valid_transition(cls, current: IncidentStatus, new: IncidentStatus) -> bool:
        return current not in cls.TERMINAL

    @classmethod
    def get_allowed_transitions(cls, current: IncidentStatus) -> list:
        if current in cls.TERMINAL:
            return []
        return [status for status in IncidentStatus if status != current]
