"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and the
``/health`` endpoint (liveness check with the number of open chat
connections).
"""

from fastapi import APIRouter, Request

from relay_server import __version__

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "Chat Relay API", "version": __version__}


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return {"status": "ok", "active_connections": request.app.state.connections.active_count}
