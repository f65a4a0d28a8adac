"""LibreTranslate-compatible translator backend.

Speaks the ``POST /translate`` protocol shared by LibreTranslate and its
hosted clones::

    request:  {"q": "...", "source": "ko", "target": "en", "format": "text"}
    response: {"translatedText": "..."}

``api_key`` is only sent when configured.
"""

from __future__ import annotations

import httpx

from relay_server.translation.base import TranslatorResponseError, post_json
from relay_server.translation.languages import LanguageCode
from relay_server.translation.validator import OutputValidator


class LibreTranslateTranslator:
    """Translator backed by a LibreTranslate-style HTTP service."""

    name = "libretranslate"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        validator: OutputValidator,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_endpoint = f"{base_url.rstrip('/')}/translate"
        self._api_key = api_key
        self._validator = validator
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        payload: dict = {
            "q": text,
            "source": source.value,
            "target": target.value,
            "format": "text",
        }
        if self._api_key:
            payload["api_key"] = self._api_key

        data = await post_json(self._client, self._api_endpoint, payload, backend=self.name)
        if not isinstance(data, dict) or "translatedText" not in data:
            raise TranslatorResponseError(f"{self.name}: response missing translatedText")

        cleaned = self._validator.validate(str(data["translatedText"]), source_text=text)
        if cleaned is None:
            raise TranslatorResponseError(f"{self.name}: unusable output for {target.value}")
        return cleaned

    async def aclose(self) -> None:
        await self._client.aclose()
