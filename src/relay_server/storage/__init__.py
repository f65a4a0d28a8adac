"""Key-value storage backends for room and message persistence.

The room store only ever talks to the narrow :class:`KeyValueStore`
protocol: set, string and list primitives with Redis semantics.  Two
implementations are provided:

memory.py       InMemoryStore — process-local, used for tests and single
                process development.
redis_store.py  RedisStore    — ``redis.asyncio`` client for durable,
                multi-process deployments.
"""

from relay_server.storage.base import KeyValueStore, build_store
from relay_server.storage.errors import StorageError, StorageReadError, StorageWriteError

__all__ = ["KeyValueStore", "StorageError", "StorageReadError", "StorageWriteError", "build_store"]
