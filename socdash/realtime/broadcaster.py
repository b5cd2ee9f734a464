# socdash/realtime/broadcaster.py
"""
Fan-out of new alerts to live sessions.

publish() never awaits a subscriber: each message is dropped into the
session's bounded queue, and a session whose queue is full is disconnected
instead of slowing down the writer.
"""
import asyncio
from typing import Iterable, Optional

from loguru import logger
from prometheus_client import Counter

from socdash.core.config import settings
from socdash.db.models.enums import UserRole
from socdash.realtime.registry import SessionRegistry

NEW_ALERT_EVENT = "new-alert"

EVENTS_PUBLISHED = Counter(
    'socdash_live_events_published_total',
    'Events handed to the broadcaster',
    ['event']
)

DELIVERIES = Counter(
    'socdash_live_deliveries_total',
    'Per-session deliveries, by outcome',
    ['outcome']
)


class Broadcaster:
    def __init__(self, registry: SessionRegistry, scope: Optional[str] = None):
        self.registry = registry
        self.scope = scope or settings.BROADCAST_SCOPE

    def _targets(self, rooms: Optional[Iterable[UserRole]]):
        sessions = self.registry.sessions()
        if self.scope == "global" and rooms is None:
            return sessions
        if rooms is None:
            return [s for s in sessions if s.room is not None]
        wanted = {UserRole(room) for room in rooms}
        return [s for s in sessions if s.room in wanted]

    def publish(self, event: str, payload: dict, rooms: Optional[Iterable[UserRole]] = None) -> int:
        """
        Enqueue `payload` for every targeted session and return how many got it.

        In global scope every connected session is a target. In room scope
        only sessions that joined a room are, restricted to `rooms` when given.
        """
        message = {"event": event, "data": payload}
        EVENTS_PUBLISHED.labels(event=event).inc()
        delivered = 0
        for session in self._targets(rooms):
            if not session.is_active:
                continue
            try:
                session.enqueue(message)
            except asyncio.QueueFull:
                DELIVERIES.labels(outcome="dropped").inc()
                logger.warning(f"Live session {session.id[:8]} outbound queue full, disconnecting")
                self.registry.disconnect(session, reason="overflow")
                continue
            DELIVERIES.labels(outcome="queued").inc()
            delivered += 1

        logger.debug(f"Published {event} to {delivered} sessions")
        return delivered

    def publish_alert(self, payload: dict) -> int:
        return self.publish(NEW_ALERT_EVENT, payload)
