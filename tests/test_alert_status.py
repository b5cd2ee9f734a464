"""
Alert lifecycle tests, including concurrent writers on one alert
"""
import asyncio
import pytest

from socdash.core.config import settings
from socdash.db.crud import alert as alert_crud
from socdash.db.models.enums import AlertStatus
from socdash.exceptions.errors import InvalidTransitionError, NotFoundError, ValidationError


def assert_lifecycle_invariants(alert):
    assert (alert.resolved_at is not None) == (alert.status == AlertStatus.RESOLVED)
    if alert.assigned_to is not None:
        assert alert.status != AlertStatus.NEW


@pytest.fixture
async def new_alert(db_session, alert_draft):
    alert, _ = await alert_crud.create_alert(db_session, alert_draft)
    return alert


class TestStatusTransitions:

    async def test_resolving_sets_resolved_at(self, db_session, new_alert, analyst_user):
        alert = await alert_crud.update_status(db_session, new_alert.id, "Assigned", assigned_to=analyst_user.id)
        assert alert.assigned_to == analyst_user.id
        assert alert.resolved_at is None

        alert = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.RESOLVED)
        assert alert.status == AlertStatus.RESOLVED
        assert alert.resolved_at is not None
        assert alert.assigned_to == analyst_user.id
        assert_lifecycle_invariants(alert)

    async def test_reopening_clears_resolved_at(self, db_session, new_alert):
        await alert_crud.update_status(db_session, new_alert.id, AlertStatus.IN_PROGRESS)
        await alert_crud.update_status(db_session, new_alert.id, AlertStatus.RESOLVED)

        alert = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.IN_PROGRESS)

        assert alert.resolved_at is None
        assert_lifecycle_invariants(alert)

    async def test_resolved_at_is_stamped_once(self, db_session, new_alert):
        await alert_crud.update_status(db_session, new_alert.id, AlertStatus.IN_PROGRESS)
        first = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.RESOLVED)
        stamped = first.resolved_at

        again = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.RESOLVED)

        assert again.resolved_at == stamped

    @pytest.mark.parametrize("target", [AlertStatus.RESOLVED, AlertStatus.FALSE_POSITIVE])
    async def test_new_cannot_jump_to_closed_states(self, db_session, new_alert, target):
        alert_id = new_alert.id
        with pytest.raises(InvalidTransitionError):
            await alert_crud.update_status(db_session, alert_id, target)

        alert = await alert_crud.get_alert(db_session, alert_id)
        assert alert.status == AlertStatus.NEW

    async def test_alert_stays_readable_after_rejected_transition(self, db_session, new_alert):
        with pytest.raises(InvalidTransitionError):
            await alert_crud.update_status(db_session, new_alert.id, AlertStatus.RESOLVED)

        assert new_alert.id is not None
        assert new_alert.status == AlertStatus.NEW
        assert new_alert.alert_type == "Port Scan"

    async def test_loose_mode_allows_direct_resolution(self, db_session, new_alert, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_ALERT_TRANSITIONS", False)

        alert = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.FALSE_POSITIVE)

        assert alert.status == AlertStatus.FALSE_POSITIVE
        assert_lifecycle_invariants(alert)

    async def test_back_to_new_drops_assignee(self, db_session, new_alert, analyst_user):
        await alert_crud.update_status(db_session, new_alert.id, AlertStatus.ASSIGNED, assigned_to=analyst_user.id)

        alert = await alert_crud.update_status(db_session, new_alert.id, AlertStatus.NEW)

        assert alert.assigned_to is None
        assert_lifecycle_invariants(alert)

    async def test_new_with_assignee_is_rejected(self, db_session, new_alert, analyst_user):
        with pytest.raises(ValidationError):
            await alert_crud.update_status(db_session, new_alert.id, AlertStatus.NEW, assigned_to=analyst_user.id)

    async def test_unknown_status_is_rejected(self, db_session, new_alert):
        with pytest.raises(ValidationError):
            await alert_crud.update_status(db_session, new_alert.id, "Escalated")

    async def test_unknown_alert(self, db_session):
        with pytest.raises(NotFoundError):
            await alert_crud.update_status(db_session, 4242, AlertStatus.ASSIGNED)

    async def test_unknown_assignee(self, db_session, new_alert):
        alert_id = new_alert.id
        with pytest.raises(NotFoundError):
            await alert_crud.update_status(db_session, alert_id, AlertStatus.ASSIGNED, assigned_to=999)

        alert = await alert_crud.get_alert(db_session, alert_id)
        assert alert.status == AlertStatus.NEW
        assert alert.assigned_to is None


class TestConcurrentWriters:

    async def test_concurrent_updates_match_some_sequential_order(self, session_factory, new_alert):
        targets = [AlertStatus.IN_PROGRESS, AlertStatus.RESOLVED, AlertStatus.ASSIGNED] * 4

        async def writer(target):
            async with session_factory() as db:
                try:
                    return await alert_crud.update_status(db, new_alert.id, target)
                except InvalidTransitionError:
                    return None

        results = await asyncio.gather(*(writer(t) for t in targets))

        applied = [r for r in results if r is not None]
        assert applied, "at least the first writer must succeed"
        for alert in applied:
            assert_lifecycle_invariants(alert)

        async with session_factory() as db:
            final = await alert_crud.get_alert(db, new_alert.id)
        assert_lifecycle_invariants(final)
        # Updates are serialized, so the stored row is the last applied write
        last_applied = max(applied, key=lambda a: a.updated_at)
        assert final.status == last_applied.status
