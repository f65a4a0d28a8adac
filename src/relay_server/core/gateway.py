"""
Gateway coordinator: the per-connection chat state machine.

The gateway receives one inbound event at a time per connection, resolves
the caller's session, reads or writes the room store, runs the
translation pipeline and emits outbound events through the transport.

Connection states
-----------------
::

    Connected (no room) ──join──▶ InRoom(room) ──join──▶ InRoom(room')
            │                         │
            └──────disconnect─────────┴──────▶ Disconnected

There is no leave-only command: a connection leaves a room only by
joining another one or by disconnecting.

Event surface
-------------
==================  ===========================================  ==========
inbound             outbound                                     scope
==================  ===========================================  ==========
(connect)           ``connected`` {id, userId, nickname}         caller
                    ``rooms:list`` [Room]                        caller
``ping``            ``pong`` {at, echo}                          caller
``rooms:list``      ``rooms:list`` [Room]                        caller
``rooms:create``    ``rooms:created`` Room                       caller
                    ``rooms:list`` [Room]                        everyone
``rooms:join``      ``rooms:joined`` {room, messages}            caller
``chat:send``       ``chat:message`` ChatMessage                 room
==================  ===========================================  ==========

Invalid input is dropped silently
---------------------------------
Commands from an unknown connection, empty or non-string names, room ids
or texts, and chat messages sent before joining a room are ignored: no
error event, no side effect.  These are explicit early returns, not
exceptions, and they are intended behaviour.

Nothing here terminates a connection.  Storage failures and unexpected
errors are logged at the event boundary in :meth:`dispatch` and the event
is dropped; the connection keeps working.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from relay_server.core.models import ChatMessage, Sender, now_ms
from relay_server.core.room_store import DEFAULT_REPLAY_LIMIT, RoomStore
from relay_server.core.sessions import Session, SessionRegistry
from relay_server.core.transport import Transport
from relay_server.storage.errors import StorageError
from relay_server.translation.service import TranslationPipeline

logger = logging.getLogger(__name__)

# Inbound event names
EVENT_PING = "ping"
EVENT_LIST_ROOMS = "rooms:list"
EVENT_CREATE_ROOM = "rooms:create"
EVENT_JOIN_ROOM = "rooms:join"
EVENT_SEND_MESSAGE = "chat:send"

# Outbound event names
EVENT_CONNECTED = "connected"
EVENT_PONG = "pong"
EVENT_ROOM_LIST = "rooms:list"
EVENT_ROOM_CREATED = "rooms:created"
EVENT_ROOM_JOINED = "rooms:joined"
EVENT_MESSAGE = "chat:message"


def _text_field(payload: Any, name: str) -> str:
    """Return ``payload[name]`` trimmed, or ``""`` when absent or not a string."""
    if not isinstance(payload, dict):
        return ""
    value = payload.get(name)
    if not isinstance(value, str):
        return ""
    return value.strip()


class GatewayCoordinator:
    """Orchestrates sessions, room state, translation and delivery.

    All collaborators are injected; the gateway holds no global state.

    Attributes:
        _sessions: Live connection registry.
        _rooms: Room registry and history.
        _pipeline: Translation pipeline for chat messages.
        _transport: Outbound delivery and room membership.
        _replay_limit: Messages replayed to a connection on join.
    """

    def __init__(
        self,
        *,
        sessions: SessionRegistry,
        rooms: RoomStore,
        pipeline: TranslationPipeline,
        transport: Transport,
        replay_limit: int = DEFAULT_REPLAY_LIMIT,
    ) -> None:
        self._sessions = sessions
        self._rooms = rooms
        self._pipeline = pipeline
        self._transport = transport
        self._replay_limit = replay_limit
        self._handlers: dict[str, Callable[[str, Any], Awaitable[None]]] = {
            EVENT_PING: self.heartbeat,
            EVENT_LIST_ROOMS: self.list_rooms,
            EVENT_CREATE_ROOM: self.create_room,
            EVENT_JOIN_ROOM: self.join_room,
            EVENT_SEND_MESSAGE: self.send_message,
        }

    # ── Event boundary ────────────────────────────────────────────────────────

    async def dispatch(self, connection_id: str, event: Any, payload: Any = None) -> None:
        """Route one inbound event to its handler.

        Unknown events are ignored.  Any failure inside a handler is logged
        and swallowed here so the connection stays usable.
        """
        handler = self._handlers.get(event) if isinstance(event, str) else None
        if handler is None:
            logger.debug("Ignoring unknown event %r from %s", event, connection_id)
            return

        try:
            await handler(connection_id, payload)
        except StorageError as exc:
            logger.error("Storage failure handling %r from %s: %s", event, connection_id, exc)
        except Exception:
            logger.exception("Handler for %r failed (connection=%s)", event, connection_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(
        self,
        connection_id: str,
        claimed_user_id: object = None,
        claimed_nickname: object = None,
    ) -> Session:
        """Register a new connection, confirm its identity, push the room list.

        The connection joins the broadcast audience only after ``connected``
        has been sent, so no listing broadcast can overtake it.  The room
        listing is best effort: a failure is logged and the connection
        remains fully usable.
        """
        session = self._sessions.on_connect(connection_id, claimed_user_id, claimed_nickname)
        await self._transport.send(
            connection_id,
            EVENT_CONNECTED,
            {"id": connection_id, "userId": session.user_id, "nickname": session.nickname},
        )
        self._transport.enable_broadcast(connection_id)

        try:
            await self._send_room_list(connection_id)
        except Exception:
            logger.exception("Initial room list push failed for %s", connection_id)

        return session

    async def disconnect(self, connection_id: str) -> None:
        """Drop the session and its room membership; idempotent."""
        session = self._sessions.on_disconnect(connection_id)
        if session is not None and session.current_room_id is not None:
            self._transport.leave_room(connection_id, session.current_room_id)

    # ── Commands ──────────────────────────────────────────────────────────────

    async def heartbeat(self, connection_id: str, payload: Any = None) -> None:
        """Echo ``payload`` back with the server time."""
        await self._transport.send(connection_id, EVENT_PONG, {"at": now_ms(), "echo": payload})

    async def list_rooms(self, connection_id: str, payload: Any = None) -> None:
        await self._send_room_list(connection_id)

    async def create_room(self, connection_id: str, payload: Any) -> None:
        """Create a room, reply with it, then broadcast the new listing to everyone."""
        session = self._sessions.get(connection_id)
        if session is None:
            return
        name = _text_field(payload, "name")
        if not name:
            return

        room = await self._rooms.create_room(name, session.user_id, session.nickname)
        await self._transport.send(connection_id, EVENT_ROOM_CREATED, room.to_payload())

        rooms = await self._rooms.list_rooms()
        await self._transport.broadcast(EVENT_ROOM_LIST, [r.to_payload() for r in rooms])

    async def join_room(self, connection_id: str, payload: Any) -> None:
        """Move the connection into a room and replay its recent history.

        The room id is not required to exist; an unknown room replies with
        ``room: null`` and whatever history is stored under that id.
        """
        session = self._sessions.get(connection_id)
        if session is None:
            return
        room_id = _text_field(payload, "roomId")
        if not room_id:
            return

        previous = session.current_room_id
        if previous is not None and previous != room_id:
            self._transport.leave_room(connection_id, previous)
        self._transport.join_room(connection_id, room_id)
        self._sessions.set_room(connection_id, room_id)

        room = await self._rooms.get_room(room_id)
        messages = await self._rooms.get_messages(room_id, self._replay_limit)
        await self._transport.send(
            connection_id,
            EVENT_ROOM_JOINED,
            {
                "room": room.to_payload() if room is not None else None,
                "messages": [message.to_payload() for message in messages],
            },
        )

    async def send_message(self, connection_id: str, payload: Any) -> None:
        """Translate, store and multicast a chat message to the sender's room."""
        session = self._sessions.get(connection_id)
        if session is None or session.current_room_id is None:
            return
        text = _text_field(payload, "text")
        if not text:
            return

        room_id = session.current_room_id
        sent_at = now_ms()
        translations = await self._pipeline.translate(text)

        message = ChatMessage(
            room_id=room_id,
            sender=Sender(user_id=session.user_id, nickname=session.nickname),
            at=sent_at,
            translations=translations,
        )
        await self._rooms.append_message(room_id, message)
        await self._transport.send_to_room(room_id, EVENT_MESSAGE, message.to_payload())

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _send_room_list(self, connection_id: str) -> None:
        rooms = await self._rooms.list_rooms()
        await self._transport.send(
            connection_id, EVENT_ROOM_LIST, [room.to_payload() for room in rooms]
        )
