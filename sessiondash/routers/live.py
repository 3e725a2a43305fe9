"""WebSocket channel for live session updates."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sessiondash.models import SessionDetailsEvent
from sessiondash.notifications import NotificationHub
from sessiondash.services.query import SessionQueryService

logger = logging.getLogger("sessiondash.live")

live_router = APIRouter(tags=["live"])


def _first_str(data: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


async def receive_frame_text(websocket: WebSocket) -> str:
    """Wait for the next inbound frame and return it as text.

    Binary frames are decoded as UTF-8. Raises WebSocketDisconnect when the
    client goes away.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes") or b""
    return data.decode("utf-8", errors="replace")


async def handle_client_message(
    websocket: Any,
    raw: str,
    hub: NotificationHub,
    service: SessionQueryService,
) -> None:
    """Answer one inbound client message.

    Malformed or unknown messages are logged and ignored so the connection
    stays usable.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Invalid message: {e}")
        return
    if not isinstance(data, dict):
        logger.warning(f"Invalid message: expected an object, got {type(data).__name__}")
        return

    msg_type = data.get("type")
    if msg_type in ("getSession", "get_session"):
        project_raw = _first_str(data, "projectRaw", "project_raw")
        session_id = _first_str(data, "sessionId", "session_id")
        detail = service.get_session(project_raw, session_id) if project_raw and session_id else None
        await hub.send(websocket, SessionDetailsEvent(data=detail))
    elif msg_type == "refresh":
        await hub.send_init(websocket)
    else:
        logger.debug(f"Ignoring message type {msg_type!r}")


@live_router.websocket("/")
@live_router.websocket("/ws")
async def live_updates(websocket: WebSocket):
    """Push init/update/refresh events and answer detail requests."""
    hub: NotificationHub = websocket.app.state.notification_hub
    service: SessionQueryService = websocket.app.state.query_service

    await websocket.accept()
    await hub.connect(websocket)
    try:
        while True:
            raw = await receive_frame_text(websocket)
            try:
                await handle_client_message(websocket, raw, hub, service)
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.exception("Error handling client message")
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
