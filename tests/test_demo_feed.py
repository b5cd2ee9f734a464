"""
Demo alert feed tests
"""
import random

from socdash.api.v1.schemas.alerts import AlertCreate
from socdash.api.v1.schemas.auth import Principal
from socdash.db.crud import alert as alert_crud
from socdash.db.models.enums import UserRole
from socdash.services.demo_feed import DemoAlertFeed, build_demo_alert


def test_demo_alert_is_a_valid_draft():
    rng = random.Random(7)
    for _ in range(20):
        draft = AlertCreate.model_validate(build_demo_alert(rng))
        assert draft.latitude is not None
        assert draft.destination_ip == "192.168.1.100"


async def test_tick_ingests_and_broadcasts(session_factory, registry, broadcaster):
    session = registry.connect(Principal(subject="watcher", role=UserRole.SOC_MANAGER))
    feed = DemoAlertFeed(session_factory, broadcaster, interval=60, probability=1.0, rng=random.Random(1))

    assert await feed.tick() is True

    async with session_factory() as db:
        items, total = await alert_crud.query_alerts(db)
    assert total == 1
    assert session.queue.get_nowait()["data"]["id"] == items[0].id


async def test_tick_respects_probability(session_factory, broadcaster):
    feed = DemoAlertFeed(session_factory, broadcaster, interval=60, probability=0.0)

    assert await feed.tick() is False


async def test_start_and_stop(session_factory, broadcaster):
    feed = DemoAlertFeed(session_factory, broadcaster, interval=60, probability=0.0)
    task = feed.start()

    await feed.stop()

    assert task.cancelled() or task.done()
