"""HTTP and WebSocket route registration."""

from fastapi import FastAPI

from relay_server.api.routes import health, rooms
from relay_server.api.websocket import router as websocket_router


def register_routes(app: FastAPI) -> None:
    """Register all relay routes with the FastAPI app."""
    app.include_router(health.router)
    app.include_router(rooms.router)
    app.include_router(websocket_router)
