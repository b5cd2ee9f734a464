# socdash/api/v1/endpoints/live.py
"""
Live alert channel.

Protocol (JSON text frames):
    server -> {"event": "connected", "session_id": ...}
    client -> {"event": "join-role", "role": "SOC Analyst"}
    server -> {"event": "joined", "role": "SOC Analyst"}
    server -> {"event": "new-alert", "data": {...alert...}}
    server -> {"event": "error", "detail": ...}

Only alerts published while connected are delivered. After a reconnect the
client has to re-query /alerts to catch up.
"""
import asyncio
import contextlib
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from jose import JWTError

from socdash.auth.security import principal_from_token
from socdash.core import tracing
from socdash.db.models.enums import UserRole
from socdash.realtime.registry import LiveSession, SessionRegistry

router = APIRouter()

JOIN_EVENT = "join-role"

_CLOSE_CODES = {
    "overflow": status.WS_1013_TRY_AGAIN_LATER,
    "shutdown": status.WS_1001_GOING_AWAY,
}


async def _pump(websocket: WebSocket, session: LiveSession):
    """Forward queued events to the socket until the session is disconnected"""
    while True:
        message = await session.next_message()
        if message is None:
            break
        await websocket.send_json(message)

    if session.disconnect_reason in _CLOSE_CODES:
        with contextlib.suppress(RuntimeError):
            await websocket.close(code=_CLOSE_CODES[session.disconnect_reason])


async def _handle_join(websocket: WebSocket, registry: SessionRegistry, session: LiveSession, message: dict):
    try:
        role = UserRole(message.get("role"))
    except ValueError:
        await websocket.send_json({"event": "error", "detail": f"Unknown role: {message.get('role')}"})
        return

    if role != session.principal.role:
        tracing.warning(
            "Live room join denied",
            event_type="access_control",
            session=session.id[:8],
            requested_role=role.value,
            principal_role=session.principal.role.value,
        )
        await websocket.send_json({"event": "error", "detail": "Cannot join a room for another role"})
        return

    registry.join(session, role)
    await websocket.send_json({"event": "joined", "role": role.value})


@router.websocket("/live")
async def live_channel(websocket: WebSocket, token: Optional[str] = Query(None)):
    registry: SessionRegistry = websocket.app.state.session_registry

    try:
        if not token:
            raise JWTError("Missing token")
        principal = principal_from_token(token)
    except JWTError as e:
        tracing.warning(f"Live channel rejected: {e}", event_type="access_control")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        session = registry.connect(principal)
    except RuntimeError:
        tracing.warning("Live channel refused while shutting down", event_type="connection")
        await websocket.close(code=status.WS_1001_GOING_AWAY)
        return

    pump = None
    reason = "closed"

    try:
        await websocket.accept()
        await websocket.send_json({"event": "connected", "session_id": session.id})
        pump = asyncio.create_task(_pump(websocket, session))

        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "detail": "Messages must be JSON objects"})
                continue

            if isinstance(message, dict) and message.get("event") == JOIN_EVENT:
                await _handle_join(websocket, registry, session, message)
            else:
                await websocket.send_json({"event": "error", "detail": "Unsupported event"})
    except WebSocketDisconnect:
        reason = "client"
    except RuntimeError:
        # Socket already closed by the pump (overflow or shutdown)
        reason = session.disconnect_reason or "closed"
    finally:
        registry.disconnect(session, reason=reason)
        if pump is not None:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await pump
