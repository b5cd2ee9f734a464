"""Live alert distribution"""
from socdash.realtime.registry import SessionRegistry, LiveSession, SessionState
from socdash.realtime.broadcaster import Broadcaster, NEW_ALERT_EVENT

__all__ = ["SessionRegistry", "LiveSession", "SessionState", "Broadcaster", "NEW_ALERT_EVENT"]
