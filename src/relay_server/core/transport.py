"""Outbound delivery and room membership for live connections.

The gateway never touches sockets directly; it talks to a
:class:`Transport`, which knows how to reach one connection, every member
of a room, or every connection.

:class:`ConnectionManager` is the WebSocket implementation.  Frames are
JSON objects of the form ``{"event": <name>, "data": <payload>}``.

Delivery policy
---------------
- Each socket has its own send lock, so frames from concurrent handlers
  (a room multicast triggered by another connection, and this
  connection's own reply) never interleave on the wire.
- Room multicasts and broadcasts write to all recipients concurrently.
  A send that does not complete within ``send_timeout`` seconds marks the
  socket as stalled: it is logged and unregistered.
- A failed send to one socket is logged and skipped; it never aborts a
  multicast or broadcast to the remaining connections.
- A registered socket is reachable by :meth:`ConnectionManager.send`
  straight away but only receives broadcasts after
  :meth:`ConnectionManager.enable_broadcast`.  The gateway enables it once
  the ``connected`` frame is out, so that frame is always first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT = 5.0


class Transport(Protocol):
    """Delivery surface used by the gateway."""

    async def send(self, connection_id: str, event: str, data: Any) -> None: ...

    async def send_to_room(self, room_id: str, event: str, data: Any) -> None: ...

    async def broadcast(self, event: str, data: Any) -> None: ...

    def enable_broadcast(self, connection_id: str) -> None: ...

    def join_room(self, connection_id: str, room_id: str) -> None: ...

    def leave_room(self, connection_id: str, room_id: str) -> None: ...


class ConnectionManager:
    """Registry of open WebSockets and their room memberships.

    Attributes:
        _sockets: connection id → WebSocket.
        _locks: connection id → per-socket send lock.
        _rooms: room id → member connection ids.
        _audience: connection ids that receive broadcasts.
        _send_timeout: Seconds one frame may take to write.
    """

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT) -> None:
        self._sockets: dict[str, WebSocket] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._rooms: dict[str, set[str]] = {}
        self._audience: set[str] = set()
        self._send_timeout = send_timeout

    @property
    def active_count(self) -> int:
        return len(self._sockets)

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        self._sockets[connection_id] = websocket
        self._locks[connection_id] = asyncio.Lock()

    def enable_broadcast(self, connection_id: str) -> None:
        if connection_id in self._sockets:
            self._audience.add(connection_id)

    def unregister(self, connection_id: str) -> None:
        """Forget a connection and drop it from every room."""
        self._sockets.pop(connection_id, None)
        self._locks.pop(connection_id, None)
        self._audience.discard(connection_id)
        for room_id in [r for r, members in self._rooms.items() if connection_id in members]:
            self.leave_room(connection_id, room_id)

    # ── Membership ────────────────────────────────────────────────────────────

    def join_room(self, connection_id: str, room_id: str) -> None:
        self._rooms.setdefault(room_id, set()).add(connection_id)

    def leave_room(self, connection_id: str, room_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]

    def room_members(self, room_id: str) -> set[str]:
        return set(self._rooms.get(room_id, ()))

    # ── Delivery ──────────────────────────────────────────────────────────────

    async def send(self, connection_id: str, event: str, data: Any) -> None:
        websocket = self._sockets.get(connection_id)
        lock = self._locks.get(connection_id)
        if websocket is None or lock is None:
            return
        try:
            async with lock:
                # Dropped while this frame waited for the lock.
                if self._sockets.get(connection_id) is not websocket:
                    return
                await asyncio.wait_for(
                    websocket.send_json({"event": event, "data": data}),
                    timeout=self._send_timeout,
                )
        except TimeoutError:
            logger.warning(
                "ConnectionManager: %s stalled on %r for %.1fs, dropping it",
                connection_id,
                event,
                self._send_timeout,
            )
            self.unregister(connection_id)
        except Exception as exc:
            logger.warning(
                "ConnectionManager: delivery of %r to %s failed: %s",
                event,
                connection_id,
                exc,
            )

    async def send_to_room(self, room_id: str, event: str, data: Any) -> None:
        await self._send_many(sorted(self.room_members(room_id)), event, data)

    async def broadcast(self, event: str, data: Any) -> None:
        await self._send_many(sorted(self._audience), event, data)

    async def _send_many(self, connection_ids: list[str], event: str, data: Any) -> None:
        await asyncio.gather(
            *(self.send(connection_id, event, data) for connection_id in connection_ids)
        )
