"""In-memory registry of live connections.

One :class:`Session` exists per open WebSocket, created on connect and
dropped on disconnect.  Sessions are process-local and never persisted.

Only the gateway mutates the registry, and always keyed by the connection
id of the event it is handling.  Events from one connection are processed
strictly in order, so no two mutations of the same session ever overlap
and no locking is needed.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_NICKNAME = "anonymous"


@dataclass
class Session:
    """Claimed identity and room membership of one live connection.

    Attributes:
        connection_id: Transport-assigned, unique for the connection lifetime.
        user_id: Client-claimed user id; defaults to ``connection_id``.
        nickname: Client-claimed nickname; defaults to ``"anonymous"``.
        current_room_id: The single room the connection has joined, if any.
    """

    connection_id: str
    user_id: str
    nickname: str
    current_room_id: str | None = None


def _claim(value: object) -> str:
    """Normalise a client identity claim; non-strings count as absent."""
    if not isinstance(value, str):
        return ""
    return value.strip()


class SessionRegistry:
    """Mapping of connection id → :class:`Session`."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    def on_connect(
        self,
        connection_id: str,
        claimed_user_id: object = None,
        claimed_nickname: object = None,
    ) -> Session:
        """Create and store the session for a new connection."""
        session = Session(
            connection_id=connection_id,
            user_id=_claim(claimed_user_id) or connection_id,
            nickname=_claim(claimed_nickname) or DEFAULT_NICKNAME,
        )
        self._sessions[connection_id] = session
        return session

    def on_disconnect(self, connection_id: str) -> Session | None:
        """Remove and return the session; unknown ids are a no-op."""
        return self._sessions.pop(connection_id, None)

    def get(self, connection_id: str) -> Session | None:
        return self._sessions.get(connection_id)

    def set_room(self, connection_id: str, room_id: str) -> Session | None:
        """Record ``room_id`` as the session's only room.

        The caller must already have left any previous room at the
        transport layer.  Returns ``None`` for an unknown connection.
        """
        session = self._sessions.get(connection_id)
        if session is None:
            return None
        session.current_room_id = room_id
        return session
