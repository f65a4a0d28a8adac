"""Exceptions raised by storage backends.

A missing key is not an error: reads return ``None`` or an empty
collection.  These types cover the backend itself being unusable
(unreachable server, timeout, protocol error).  The room store lets them
propagate; the gateway logs them and drops the event, and the HTTP routes
answer 503.
"""

from __future__ import annotations


class StorageError(RuntimeError):
    """A backend command failed.

    ``operation`` names the command that failed (``"redis.lrange"``) and
    ``key`` the key it addressed.  The driver exception is chained as
    ``__cause__``.
    """

    def __init__(self, operation: str, key: str | None = None) -> None:
        super().__init__(operation if key is None else f"{operation} key={key!r}")
        self.operation = operation
        self.key = key


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass
