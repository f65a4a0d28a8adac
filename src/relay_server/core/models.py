"""
Pydantic records for rooms and chat messages.

These models are both the persisted form (JSON strings in the key-value
store) and the wire form (JSON payloads on the WebSocket).  Field names are
snake_case in Python and camelCase on the wire and in storage:

    Room         {id, name, createdAt, createdByUserId, createdByNickname}
    ChatMessage  {roomId, from: {userId, nickname}, at, translations}

Timestamps are integer epoch milliseconds.

Records are immutable once built; rooms are never updated and messages
are append-only.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> dict:
        """Wire/storage representation with camelCase keys."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Room(_Record):
    """
    A named chat channel.

    Attributes:
        id: Opaque, immutable identifier (timestamp plus random suffix).
        name: Display name; trimmed, non-empty, not necessarily unique.
        created_at: Creation time in epoch milliseconds.
        created_by_user_id: User id of the creator.
        created_by_nickname: Creator's nickname at creation time.
    """

    id: str
    name: str
    created_at: int
    created_by_user_id: str
    created_by_nickname: str


class Sender(_Record):
    """Identity snapshot of a message author at send time."""

    user_id: str
    nickname: str


class ChatMessage(_Record):
    """
    A stored chat message with all of its translations.

    Attributes:
        room_id: Room the message was sent to.
        sender: Author identity snapshot (``from`` on the wire).
        at: Send time in epoch milliseconds.
        translations: ``{language_code: text}`` for every supported
            language; the detected source language holds the original.
    """

    room_id: str
    sender: Sender = Field(alias="from")
    at: int
    translations: dict[str, str]
