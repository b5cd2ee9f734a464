"""
Status transition rule tests
"""
import pytest

from socdash.core.status_rules import AlertStatusTransition, IncidentStatusTransition
from socdash.db.models.enums import AlertStatus, IncidentStatus


class TestAlertRules:

    @pytest.mark.parametrize("current,new,expected", [
        (AlertStatus.NEW, AlertStatus.ASSIGNED, True),
        (AlertStatus.NEW, AlertStatus.IN_PROGRESS, True),
        (AlertStatus.NEW, AlertStatus.RESOLVED, False),
        (AlertStatus.NEW, AlertStatus.FALSE_POSITIVE, False),
        (AlertStatus.ASSIGNED, AlertStatus.RESOLVED, True),
        (AlertStatus.IN_PROGRESS, AlertStatus.FALSE_POSITIVE, True),
        (AlertStatus.RESOLVED, AlertStatus.IN_PROGRESS, True),
        (AlertStatus.FALSE_POSITIVE, AlertStatus.RESOLVED, False),
        (AlertStatus.RESOLVED, AlertStatus.RESOLVED, True),
    ])
    def test_strict_transitions(self, current, new, expected):
        assert AlertStatusTransition.is_valid_transition(current, new) is expected

    def test_loose_mode_allows_everything(self):
        for current in AlertStatus:
            for new in AlertStatus:
                assert AlertStatusTransition.is_valid_transition(current, new, strict=False)

    def test_allowed_transitions_from_new(self):
        assert AlertStatusTransition.get_allowed_transitions(AlertStatus.NEW) == [
            AlertStatus.ASSIGNED, AlertStatus.IN_PROGRESS
        ]


class TestIncidentRules:

    def test_closed_is_terminal(self):
        assert IncidentStatusTransition.get_allowed_transitions(IncidentStatus.CLOSED) == []
        for new in IncidentStatus:
            assert not IncidentStatusTransition.is_valid_transition(IncidentStatus.CLOSED, new)

    def test_open_states_move_freely(self):
        assert IncidentStatusTransition.is_valid_transition(IncidentStatus.RESOLVED, IncidentStatus.IN_PROGRESS)
        assert IncidentStatusTransition.is_valid_transition(IncidentStatus.NEW, IncidentStatus.CLOSED)
