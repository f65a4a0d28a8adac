"""Redis implementation of the storage interface.

A single ``redis.asyncio.Redis`` client (with its own connection pool) is
shared by every connection handler.  Responses are decoded to ``str`` so
callers never see ``bytes``.

Every driver exception is re-raised as a typed
:class:`~relay_server.storage.errors.StorageError` with the command name
as the operation, preserving the original as ``__cause__``.
"""

from __future__ import annotations

import logging
from typing import NoReturn

from redis import RedisError
from redis.asyncio import Redis

from relay_server.storage.errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)


def _raise_read_error(operation: str, exc: Exception, *, key: str) -> NoReturn:
    raise StorageReadError(f"redis.{operation}", key) from exc


def _raise_write_error(operation: str, exc: Exception, *, key: str) -> NoReturn:
    raise StorageWriteError(f"redis.{operation}", key) from exc


class RedisStore:
    """Storage interface backed by a Redis server."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisStore:
        return cls(Redis.from_url(url, decode_responses=True))

    async def sadd(self, key: str, member: str) -> None:
        try:
            await self._client.sadd(key, member)
        except RedisError as exc:
            _raise_write_error("sadd", exc, key=key)

    async def smembers(self, key: str) -> set[str]:
        try:
            return set(await self._client.smembers(key))
        except RedisError as exc:
            _raise_read_error("smembers", exc, key=key)

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            _raise_read_error("get", exc, key=key)

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client.set(key, value)
        except RedisError as exc:
            _raise_write_error("set", exc, key=key)

    async def push_capped(self, key: str, value: str, max_len: int) -> None:
        """``LPUSH`` then ``LTRIM`` in one ``MULTI``/``EXEC`` transaction."""
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.lpush(key, value)
                pipe.ltrim(key, 0, max_len - 1)
                await pipe.execute()
        except RedisError as exc:
            _raise_write_error("push_capped", exc, key=key)

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        try:
            return list(await self._client.lrange(key, start, end))
        except RedisError as exc:
            _raise_read_error("lrange", exc, key=key)

    async def aclose(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")
