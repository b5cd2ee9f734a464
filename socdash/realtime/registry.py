# socdash/realtime/registry.py
"""
Live session registry.

A session moves Connected -> RoomJoined(role) -> Disconnected. Disconnected
is terminal: a client that reconnects gets a brand new session and no
replay of what it missed.
"""
import asyncio
import enum
import uuid
from typing import Dict, List, Optional

from loguru import logger
from prometheus_client import Gauge, Counter

from socdash.api.v1.schemas.auth import Principal
from socdash.core.config import settings
from socdash.db.models.enums import UserRole

LIVE_SESSIONS = Gauge(
    'socdash_live_sessions',
    'Currently connected live sessions'
)

SESSION_DISCONNECTS = Counter(
    'socdash_live_session_disconnects_total',
    'Live sessions disconnected, by reason',
    ['reason']
)


class SessionState(str, enum.Enum):
    CONNECTED = "connected"
    ROOM_JOINED = "room_joined"
    DISCONNECTED = "disconnected"


class LiveSession:
    """One subscriber with its bounded outbound queue"""

    def __init__(self, principal: Principal, queue_size: int):
        self.id = uuid.uuid4().hex
        self.principal = principal
        self.room: Optional[UserRole] = None
        self.state = SessionState.CONNECTED
        self.disconnect_reason: Optional[str] = None
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = asyncio.Event()

    @property
    def is_active(self) -> bool:
        return self.state != SessionState.DISCONNECTED

    def enqueue(self, message: dict) -> None:
        """Queue a message without waiting; raises asyncio.QueueFull when saturated"""
        self.queue.put_nowait(message)

    def close(self, reason: str) -> None:
        self.state = SessionState.DISCONNECTED
        self.disconnect_reason = reason
        self._closed.set()

    async def next_message(self) -> Optional[dict]:
        """
        Wait for the next queued message. Returns None once the session is
        disconnected; anything still queued at that point is dropped.
        """
        if not self.is_active:
            return None
        getter = asyncio.ensure_future(self.queue.get())
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (getter, closer):
                if not task.done():
                    task.cancel()
        if getter in done and self.is_active:
            return getter.result()
        return None

    def __repr__(self):
        return f"<LiveSession id={self.id[:8]} sub={self.principal.subject} state={self.state.value}>"


class SessionRegistry:
    """
    Explicit set of live sessions, created at startup and drained at shutdown.
    """

    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or settings.SESSION_QUEUE_SIZE
        self._sessions: Dict[str, LiveSession] = {}
        self._draining = False

    def connect(self, principal: Principal) -> LiveSession:
        if self._draining:
            raise RuntimeError("Session registry is draining")
        session = LiveSession(principal, self.queue_size)
        self._sessions[session.id] = session
        LIVE_SESSIONS.inc()
        logger.info(f"Live session {session.id[:8]} connected for {principal.subject}")
        return session

    def join(self, session: LiveSession, role: UserRole) -> None:
        """Put the session in a role room, replacing any previous room"""
        if not session.is_active:
            raise RuntimeError("Cannot join a room from a disconnected session")
        session.room = UserRole(role)
        session.state = SessionState.ROOM_JOINED
        logger.debug(f"Live session {session.id[:8]} joined room {session.room.value}")

    def disconnect(self, session: LiveSession, reason: str = "closed") -> None:
        if self._sessions.pop(session.id, None) is None:
            return
        session.close(reason)
        LIVE_SESSIONS.dec()
        SESSION_DISCONNECTS.labels(reason=reason).inc()
        logger.info(f"Live session {session.id[:8]} disconnected ({reason})")

    def sessions(self) -> List[LiveSession]:
        """Snapshot of the currently connected sessions"""
        return list(self._sessions.values())

    def in_room(self, role: UserRole) -> List[LiveSession]:
        return [s for s in self._sessions.values() if s.room == role]

    def drain(self) -> int:
        """Disconnect every session and refuse new ones"""
        self._draining = True
        sessions = self.sessions()
        for session in sessions:
            self.disconnect(session, reason="shutdown")
        logger.info(f"Session registry drained, {len(sessions)} sessions closed")
        return len(sessions)

    def __len__(self) -> int:
        return len(self._sessions)
