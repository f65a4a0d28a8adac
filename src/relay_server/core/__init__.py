"""Chat core: sessions, rooms and the gateway state machine."""

from relay_server.core.gateway import GatewayCoordinator
from relay_server.core.models import ChatMessage, Room, Sender
from relay_server.core.room_store import RoomStore
from relay_server.core.sessions import Session, SessionRegistry
from relay_server.core.transport import ConnectionManager, Transport

__all__ = [
    "ChatMessage",
    "ConnectionManager",
    "GatewayCoordinator",
    "Room",
    "RoomStore",
    "Sender",
    "Session",
    "SessionRegistry",
    "Transport",
]
