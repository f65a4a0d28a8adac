"""Process-local implementation of the storage interface.

Every method body runs without an ``await`` between reading and writing
its key, so on a single event loop each call is atomic with respect to
every other call, matching the per-command atomicity Redis gives.
"""

from __future__ import annotations

from collections import defaultdict


def _slice_bounds(length: int, start: int, end: int) -> tuple[int, int]:
    """Translate inclusive Redis-style indices into Python slice bounds."""
    if start < 0:
        start = max(0, length + start)
    if end < 0:
        end = length + end
    end = min(end, length - 1)
    if start > end:
        return 0, 0
    return start, end + 1


class InMemoryStore:
    """Dict-backed store with Redis set/string/list semantics."""

    def __init__(self) -> None:
        self._sets: defaultdict[str, set[str]] = defaultdict(set)
        self._strings: dict[str, str] = {}
        self._lists: defaultdict[str, list[str]] = defaultdict(list)

    async def sadd(self, key: str, member: str) -> None:
        self._sets[key].add(member)

    async def smembers(self, key: str) -> set[str]:
        return set(self._sets.get(key, ()))

    async def get(self, key: str) -> str | None:
        return self._strings.get(key)

    async def set(self, key: str, value: str) -> None:
        self._strings[key] = value

    async def push_capped(self, key: str, value: str, max_len: int) -> None:
        items = self._lists[key]
        items.insert(0, value)
        del items[max(max_len, 0):]

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        items = self._lists.get(key, [])
        lo, hi = _slice_bounds(len(items), start, end)
        return list(items[lo:hi])

    async def aclose(self) -> None:
        return None
