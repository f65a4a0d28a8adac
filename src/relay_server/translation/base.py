"""Translator interface consumed by the translation pipeline.

A translator turns one string from one supported language into another.
Backends signal failure by raising a :class:`TranslatorError` subclass; they
never return sentinel values.  The pipeline is the only caller and it
catches every failure per target language, so a backend may raise freely.

Each backend owns its own request timeout.  Expiry is reported as
:class:`TranslatorTimeoutError` and is handled exactly like any other
failure.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from relay_server.translation.languages import LanguageCode

logger = logging.getLogger(__name__)


class TranslatorError(RuntimeError):
    """Base exception for translation backend failures."""


class TranslatorTimeoutError(TranslatorError):
    """The backend did not answer within its configured timeout."""


class TranslatorConnectionError(TranslatorError):
    """The backend could not be reached."""


class TranslatorResponseError(TranslatorError):
    """The backend answered with an error status or an unusable body."""


@runtime_checkable
class Translator(Protocol):
    """Asynchronous machine-translation backend."""

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        """Translate ``text`` from ``source`` into ``target``.

        Raises:
            TranslatorError: On timeout, transport failure or bad response.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the backend."""
        ...


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    backend: str,
) -> Any:
    """POST ``payload`` and return the decoded JSON body.

    Maps every ``httpx`` failure onto the :class:`TranslatorError`
    hierarchy so that backends only deal with response parsing.
    """
    try:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as exc:
        logger.warning("%s: request timed out (endpoint=%s)", backend, url)
        raise TranslatorTimeoutError(f"{backend}: timed out") from exc
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "%s: backend returned HTTP %d (endpoint=%s)",
            backend,
            exc.response.status_code,
            url,
        )
        raise TranslatorResponseError(
            f"{backend}: HTTP {exc.response.status_code}"
        ) from exc
    except httpx.TransportError as exc:
        logger.warning("%s: cannot connect to %s", backend, url)
        raise TranslatorConnectionError(f"{backend}: {exc}") from exc
    except ValueError as exc:
        logger.warning("%s: response body is not JSON (endpoint=%s)", backend, url)
        raise TranslatorResponseError(f"{backend}: invalid JSON body") from exc
