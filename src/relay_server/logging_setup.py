"""Root logger configuration for the relay server process."""

from __future__ import annotations

import logging

from relay_server.config import LoggingSettings

_FORMATS = {
    "simple": "%(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
}


def configure_logging(settings: LoggingSettings) -> None:
    """Install a single stream handler on the root logger.

    Unknown level names fall back to ``INFO`` rather than raising, so a typo
    in ``CHAT_LOG_LEVEL`` never prevents the server from starting.
    """
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=_FORMATS.get(settings.format, _FORMATS["detailed"]),
        force=True,
    )
