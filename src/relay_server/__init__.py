"""Polyglot chat relay server.

A room-scoped real-time message relay: clients join named rooms, exchange
short text messages, and every message is rendered into Korean, Japanese
and English before it is broadcast to the room.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("relay_server")
except PackageNotFoundError:
    __version__ = "0.1.0"
