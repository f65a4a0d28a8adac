"""Read-only HTTP access to rooms and their history.

These endpoints mirror what a WebSocket client sees on ``rooms:list`` and
``rooms:join`` without opening a chat connection.  Nothing here mutates
state; rooms are created and messages sent over the WebSocket only.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from relay_server.core.room_store import RoomStore
from relay_server.storage.errors import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _room_store(request: Request) -> RoomStore:
    return request.app.state.room_store


@router.get("")
async def list_rooms(request: Request):
    """Return every room, oldest first."""
    try:
        rooms = await _room_store(request).list_rooms()
    except StorageError as exc:
        logger.error("GET /rooms failed: %s", exc)
        raise HTTPException(status_code=503, detail="Room storage unavailable") from exc
    return [room.to_payload() for room in rooms]


@router.get("/{room_id}/messages")
async def room_messages(
    request: Request,
    room_id: str,
    limit: int | None = Query(default=None, ge=1),
):
    """
    Return the newest ``limit`` messages of a room, oldest first.

    ``limit`` defaults to the configured replay limit and may not exceed
    the history capacity.  Unknown rooms return an empty list.
    """
    store = _room_store(request)
    if limit is None:
        limit = request.app.state.config.history.replay_limit
    elif limit > store.capacity:
        raise HTTPException(
            status_code=422,
            detail=f"limit must be between 1 and {store.capacity}",
        )

    try:
        messages = await store.get_messages(room_id, limit)
    except StorageError as exc:
        logger.error("GET /rooms/%s/messages failed: %s", room_id, exc)
        raise HTTPException(status_code=503, detail="Room storage unavailable") from exc
    return [message.to_payload() for message in messages]
