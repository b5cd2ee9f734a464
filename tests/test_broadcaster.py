"""
Session registry and fan-out tests
"""
import asyncio
import pytest

from socdash.api.v1.schemas.auth import Principal
from socdash.db.models.enums import UserRole
from socdash.realtime import SessionRegistry, Broadcaster, SessionState, NEW_ALERT_EVENT


def principal(role=UserRole.SOC_ANALYST, name="analyst"):
    return Principal(subject=name, user_id=None, role=role)


class TestSessionLifecycle:

    def test_connect_join_disconnect(self, registry):
        session = registry.connect(principal())
        assert session.state == SessionState.CONNECTED
        assert session.room is None

        registry.join(session, UserRole.SOC_ANALYST)
        assert session.state == SessionState.ROOM_JOINED
        assert session.room == UserRole.SOC_ANALYST

        registry.disconnect(session, reason="client")
        assert session.state == SessionState.DISCONNECTED
        assert session.disconnect_reason == "client"
        assert len(registry) == 0

    def test_rejoin_overwrites_room(self, registry):
        session = registry.connect(principal(UserRole.SOC_MANAGER, "manager"))
        registry.join(session, UserRole.SOC_MANAGER)
        registry.join(session, UserRole.SOC_ANALYST)

        assert session.room == UserRole.SOC_ANALYST
        assert registry.in_room(UserRole.SOC_MANAGER) == []

    def test_disconnected_session_cannot_rejoin(self, registry):
        session = registry.connect(principal())
        registry.disconnect(session)

        with pytest.raises(RuntimeError):
            registry.join(session, UserRole.SOC_ANALYST)

    def test_drain_closes_everything_and_refuses_new_sessions(self, registry):
        sessions = [registry.connect(principal(name=f"user{i}")) for i in range(3)]

        assert registry.drain() == 3
        assert all(s.disconnect_reason == "shutdown" for s in sessions)
        with pytest.raises(RuntimeError):
            registry.connect(principal())


class TestPublish:

    def test_global_scope_reaches_every_session(self, registry, broadcaster):
        joined = registry.connect(principal())
        registry.join(joined, UserRole.SOC_ANALYST)
        lobby = registry.connect(principal(UserRole.ADMINISTRATOR, "admin"))

        delivered = broadcaster.publish_alert({"id": 1})

        assert delivered == 2
        expected = {"event": NEW_ALERT_EVENT, "data": {"id": 1}}
        assert joined.queue.get_nowait() == expected
        assert lobby.queue.get_nowait() == expected

    def test_room_scope_only_reaches_joined_sessions(self, registry):
        broadcaster = Broadcaster(registry, scope="room")
        analyst = registry.connect(principal())
        registry.join(analyst, UserRole.SOC_ANALYST)
        manager = registry.connect(principal(UserRole.SOC_MANAGER, "manager"))
        registry.join(manager, UserRole.SOC_MANAGER)
        lobby = registry.connect(principal(UserRole.ADMINISTRATOR, "admin"))

        assert broadcaster.publish_alert({"id": 1}) == 2
        assert broadcaster.publish("new-alert", {"id": 2}, rooms=[UserRole.SOC_MANAGER]) == 1

        assert analyst.queue.qsize() == 1
        assert manager.queue.qsize() == 2
        assert lobby.queue.qsize() == 0

    def test_publish_order_is_preserved(self, registry, broadcaster):
        session = registry.connect(principal())
        for alert_id in range(5):
            broadcaster.publish_alert({"id": alert_id})

        received = [session.queue.get_nowait()["data"]["id"] for _ in range(5)]
        assert received == [0, 1, 2, 3, 4]

    def test_overflow_disconnects_only_the_slow_session(self):
        registry = SessionRegistry(queue_size=2)
        broadcaster = Broadcaster(registry, scope="global")
        slow = registry.connect(principal(name="slow"))
        fast = registry.connect(principal(name="fast"))

        for alert_id in range(3):
            broadcaster.publish_alert({"id": alert_id})
            fast.queue.get_nowait()

        assert slow.state == SessionState.DISCONNECTED
        assert slow.disconnect_reason == "overflow"
        assert fast.is_active
        assert registry.sessions() == [fast]

    def test_disconnected_session_gets_nothing_and_no_replay(self, registry, broadcaster):
        session = registry.connect(principal())
        registry.disconnect(session)
        broadcaster.publish_alert({"id": 1})

        reconnected = registry.connect(principal())
        broadcaster.publish_alert({"id": 2})

        assert session.queue.qsize() == 0
        assert reconnected.queue.get_nowait()["data"] == {"id": 2}
        assert reconnected.queue.empty()


class TestNextMessage:

    async def test_returns_queued_message(self, registry, broadcaster):
        session = registry.connect(principal())
        broadcaster.publish_alert({"id": 9})

        message = await asyncio.wait_for(session.next_message(), timeout=1)

        assert message["data"] == {"id": 9}

    async def test_unblocks_on_disconnect(self, registry):
        session = registry.connect(principal())
        waiter = asyncio.create_task(session.next_message())
        await asyncio.sleep(0)

        registry.disconnect(session)

        assert await asyncio.wait_for(waiter, timeout=1) is None
