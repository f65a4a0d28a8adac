"""
``/chat`` WebSocket endpoint.

Each accepted socket gets a fresh connection id and is registered with the
connection manager and the gateway.  Clients claim an identity with the
``userId`` and ``nickname`` query parameters; both are optional.

Frames are JSON text of the form ``{"event": <name>, "data": <payload>}``.
The receive loop awaits each gateway handler before reading the next
frame, so one connection's events are always handled in arrival order.
Frames that are not JSON objects with a string ``event`` are ignored.
"""

import json
import logging
import uuid
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_frame(raw: str) -> tuple[str, Any] | None:
    """Return ``(event, data)`` for a well-formed frame, else ``None``."""
    try:
        frame = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(frame, dict):
        return None
    event = frame.get("event")
    if not isinstance(event, str) or not event:
        return None
    return event, frame.get("data")


@router.websocket("/chat")
async def chat_socket(websocket: WebSocket):
    """Serve one chat connection until the client goes away."""
    await websocket.accept()

    gateway = websocket.app.state.gateway
    connections = websocket.app.state.connections

    connection_id = uuid.uuid4().hex
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    user_agent = websocket.headers.get("user-agent", "")

    connections.register(connection_id, websocket)
    logger.info("Connection opened id=%s client=%s agent=%r", connection_id, client, user_agent)

    try:
        await gateway.connect(
            connection_id,
            websocket.query_params.get("userId"),
            websocket.query_params.get("nickname"),
        )

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                logger.debug("Ignoring binary frame from %s", connection_id)
                continue

            frame = _parse_frame(raw)
            if frame is None:
                logger.debug("Ignoring malformed frame from %s: %.80r", connection_id, raw)
                continue

            event, data = frame
            await gateway.dispatch(connection_id, event, data)
    except WebSocketDisconnect as exc:
        logger.info("Connection closed id=%s code=%s", connection_id, exc.code)
    finally:
        await gateway.disconnect(connection_id)
        connections.unregister(connection_id)
