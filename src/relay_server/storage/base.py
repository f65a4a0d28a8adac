"""Storage interface consumed by the room store.

The protocol mirrors the handful of Redis commands the room store needs.
Index arguments follow Redis conventions: ``end`` is inclusive and negative
indices count from the tail (``-1`` is the last element).

Atomicity contract
------------------
Each individual call is atomic with respect to every other call on the
same key.  ``push_capped`` is a single call, so no reader ever sees a
history list above its cap and concurrent appends never lose an entry.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from relay_server.config import StorageSettings

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Asynchronous set/string/list key-value store."""

    async def sadd(self, key: str, member: str) -> None: ...

    async def smembers(self, key: str) -> set[str]: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def push_capped(self, key: str, value: str, max_len: int) -> None:
        """Insert ``value`` at the head of a list and keep only ``max_len`` items."""
        ...

    async def lrange(self, key: str, start: int, end: int) -> list[str]: ...

    async def aclose(self) -> None: ...


def build_store(settings: StorageSettings) -> KeyValueStore:
    """Instantiate the configured storage backend.

    The Redis client connects lazily, so building the store never blocks
    or fails on an unreachable server; the first command surfaces that.
    """
    if settings.backend == "memory":
        from relay_server.storage.memory import InMemoryStore

        logger.info("Storage backend: in-memory (history is lost on restart)")
        return InMemoryStore()

    from relay_server.storage.redis_store import RedisStore

    logger.info("Storage backend: redis (%s)", settings.redis_url)
    return RedisStore.from_url(settings.redis_url)
