"""
FastAPI application for the chat relay.

This module builds and configures the ASGI application that serves the
relay.  It sets up:
- CORS middleware for browser clients served from other origins
- The storage backend, room store and translation pipeline
- The session registry, connection manager and gateway coordinator
- HTTP routes (health, read-only room browsing) and the ``/chat`` WebSocket

Long-lived clients (Redis connection pool, translation HTTP client) are
opened when the application starts and closed when it shuts down; they
live on ``app.state`` for the duration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay_server import __version__
from relay_server.api.routes import register_routes
from relay_server.config import ServerConfig
from relay_server.core.gateway import GatewayCoordinator
from relay_server.core.room_store import RoomStore
from relay_server.core.sessions import SessionRegistry
from relay_server.core.transport import ConnectionManager
from relay_server.storage.base import KeyValueStore, build_store
from relay_server.translation.config import TranslationLayerConfig
from relay_server.translation.service import TranslationPipeline, build_translator

logger = logging.getLogger(__name__)


def create_app(
    cfg: ServerConfig | None = None,
    *,
    store: KeyValueStore | None = None,
    pipeline: TranslationPipeline | None = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        cfg: Server configuration; defaults to the module-level config.
        store: Storage backend to use instead of the configured one.
        pipeline: Translation pipeline to use instead of the configured one.

    Returns:
        A FastAPI app whose components are created at startup.
    """
    if cfg is None:
        from relay_server.config import config as cfg

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        kv_store = store if store is not None else build_store(cfg.storage)
        translation = pipeline
        if translation is None:
            layer_config = TranslationLayerConfig.from_settings(cfg.translation)
            translation = TranslationPipeline(build_translator(layer_config))

        room_store = RoomStore(
            kv_store,
            capacity=cfg.history.capacity,
            key_prefix=cfg.storage.key_prefix,
        )
        connections = ConnectionManager()

        app.state.config = cfg
        app.state.room_store = room_store
        app.state.connections = connections
        app.state.gateway = GatewayCoordinator(
            sessions=SessionRegistry(),
            rooms=room_store,
            pipeline=translation,
            transport=connections,
            replay_limit=cfg.history.replay_limit,
        )
        logger.info(
            "Relay ready (storage=%s, history=%d, replay=%d)",
            cfg.storage.backend,
            cfg.history.capacity,
            cfg.history.replay_limit,
        )

        try:
            yield
        finally:
            if translation.translator is not None:
                await translation.translator.aclose()
            await kv_store.aclose()
            logger.info("Relay shut down")

    app = FastAPI(title="Chat Relay", version=__version__, lifespan=lifespan)

    # Credentials cannot be combined with a wildcard origin.
    allow_all = "*" in cfg.server.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Configure logging and run the relay under uvicorn."""
    import uvicorn

    from relay_server.config import config
    from relay_server.logging_setup import configure_logging

    configure_logging(config.logging)
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
    )
