"""Room registry and bounded per-room message history.

Persisted layout (all keys share the configured prefix, default ``chat``)::

    chat:rooms                  set     room ids
    chat:room:<id>              string  Room JSON
    chat:room:<id>:messages     list    ChatMessage JSON, newest first

History is stored head-first and capped at ``capacity`` entries in the
same store call that appends, so the oldest messages beyond capacity are
dropped, not archived.  Reads take the newest ``limit`` entries and reverse
them: callers always receive history oldest → newest.

Corrupt records (unparseable JSON, schema mismatch) are skipped one at a
time with a warning; a single bad record never hides the rest of a
listing.  Backend failures are *not* swallowed here: they surface as
:class:`~relay_server.storage.errors.StorageError` for the gateway to
handle at the event boundary.

The store does not check that a room exists before accepting messages for
it.  That permissive behaviour is intentional and kept.
"""

from __future__ import annotations

import logging
import secrets

from pydantic import ValidationError

from relay_server.core.models import ChatMessage, Room, now_ms
from relay_server.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 200
DEFAULT_REPLAY_LIMIT = 50


def generate_room_id(created_at: int) -> str:
    """Build a room id from a millisecond timestamp plus a random suffix."""
    return f"{created_at:x}-{secrets.token_hex(4)}"


class RoomStore:
    """Room registry and history backed by a :class:`KeyValueStore`.

    Attributes:
        _store: Storage backend.
        _prefix: Key namespace.
        _capacity: Maximum messages retained per room.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        capacity: int = DEFAULT_CAPACITY,
        key_prefix: str = "chat",
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._store = store
        self._prefix = key_prefix
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    # ── Key layout ────────────────────────────────────────────────────────────

    def _rooms_key(self) -> str:
        return f"{self._prefix}:rooms"

    def _room_key(self, room_id: str) -> str:
        return f"{self._prefix}:room:{room_id}"

    def _messages_key(self, room_id: str) -> str:
        return f"{self._prefix}:room:{room_id}:messages"

    # ── Rooms ─────────────────────────────────────────────────────────────────

    async def list_rooms(self) -> list[Room]:
        """Return every readable room, oldest first."""
        room_ids = await self._store.smembers(self._rooms_key())

        rooms: list[Room] = []
        for room_id in room_ids:
            raw = await self._store.get(self._room_key(room_id))
            if not raw:
                # Index entry without a record: a partial write.
                continue
            try:
                rooms.append(Room.model_validate_json(raw))
            except ValidationError:
                logger.warning("RoomStore: skipping corrupt room record %r", room_id)

        rooms.sort(key=lambda room: room.created_at)
        return rooms

    async def get_room(self, room_id: str) -> Room | None:
        """Return the room with ``room_id``, or ``None`` if unknown/corrupt."""
        raw = await self._store.get(self._room_key(room_id))
        if not raw:
            return None
        try:
            return Room.model_validate_json(raw)
        except ValidationError:
            logger.warning("RoomStore: corrupt room record %r", room_id)
            return None

    async def create_room(self, name: str, creator_user_id: str, creator_nickname: str) -> Room:
        """Persist a new room and register it in the room index.

        Name uniqueness is not checked.  The record is written before the
        index entry so a listing never sees an id without its record.
        """
        created_at = now_ms()
        room = Room(
            id=generate_room_id(created_at),
            name=name,
            created_at=created_at,
            created_by_user_id=creator_user_id,
            created_by_nickname=creator_nickname,
        )
        await self._store.set(self._room_key(room.id), room.to_json())
        await self._store.sadd(self._rooms_key(), room.id)
        logger.info("Room created id=%s name=%r by=%s", room.id, room.name, creator_user_id)
        return room

    # ── Messages ──────────────────────────────────────────────────────────────

    async def append_message(self, room_id: str, message: ChatMessage) -> None:
        """Insert ``message`` at the head of the room history, capped at the capacity."""
        await self._store.push_capped(
            self._messages_key(room_id), message.to_json(), self._capacity
        )

    async def get_messages(self, room_id: str, limit: int = DEFAULT_REPLAY_LIMIT) -> list[ChatMessage]:
        """Return at most ``limit`` of the newest messages, oldest first."""
        if limit < 1:
            return []
        raw_list = await self._store.lrange(self._messages_key(room_id), 0, limit - 1)

        messages: list[ChatMessage] = []
        for raw in raw_list:
            try:
                messages.append(ChatMessage.model_validate_json(raw))
            except ValidationError:
                logger.warning("RoomStore: skipping corrupt message record in room %r", room_id)

        messages.reverse()
        return messages
