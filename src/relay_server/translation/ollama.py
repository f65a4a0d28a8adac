"""Ollama translator backend.

``OllamaTranslator`` is a thin asynchronous wrapper around the Ollama
``/api/chat`` endpoint.  A local model is prompted to behave as a
translation engine for a single language pair per request.

One ``httpx.AsyncClient`` is created per translator and reused across all
requests; the client carries the configured timeout, so a slow model
surfaces as :class:`~relay_server.translation.base.TranslatorTimeoutError`.

Sampling temperature is fixed at ``0.0``: for translation the most likely
rendering is the wanted one, and identical input should produce identical
output across the room.
"""

from __future__ import annotations

import logging

import httpx

from relay_server.translation.base import TranslatorResponseError, post_json
from relay_server.translation.languages import LanguageCode
from relay_server.translation.validator import OutputValidator

logger = logging.getLogger(__name__)

_TEMPERATURE = 0.0

# Generous token ceiling; chat messages are short but CJK tokenises densely.
_DEFAULT_NUM_PREDICT = 512

_SYSTEM_PROMPT = (
    "You are a translation engine. Translate the user's chat message from "
    "{source} to {target}. Reply with the translation only: no quotes, no "
    "explanations, no romanisation. Keep emoji, names and URLs unchanged."
)


class OllamaTranslator:
    """Translator backed by a locally hosted Ollama model.

    Attributes:
        _api_endpoint: Full ``/api/chat`` URL.
        _model:        Ollama model tag (e.g. ``"gemma2:2b"``).
        _validator:    Cleans raw model output before it is returned.
        _client:       Shared async HTTP client.
    """

    name = "ollama"

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        timeout_seconds: float,
        validator: OutputValidator,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the translator.

        Args:
            base_url:        Base URL of the running Ollama instance.
            model:           Ollama model tag.
            timeout_seconds: HTTP request timeout.
            validator:       Output validator shared with other backends.
            client:          Optional pre-built client (tests inject one).
        """
        self._api_endpoint = f"{base_url.rstrip('/')}/api/chat"
        self._model = model
        self._validator = validator
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        """Ask the model for a ``source`` → ``target`` translation of ``text``."""
        payload = self._build_payload(text, source, target)
        data = await post_json(self._client, self._api_endpoint, payload, backend=self.name)

        content = ""
        if isinstance(data, dict):
            message = data.get("message")
            if isinstance(message, dict):
                content = str(message.get("content") or "")

        cleaned = self._validator.validate(content, source_text=text)
        if cleaned is None:
            raise TranslatorResponseError(f"{self.name}: unusable output for {target.value}")
        logger.debug(
            "OllamaTranslator: %s -> %s (%d chars in, %d out)",
            source.value,
            target.value,
            len(text),
            len(cleaned),
        )
        return cleaned

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_payload(self, text: str, source: LanguageCode, target: LanguageCode) -> dict:
        """Construct the Ollama ``/api/chat`` request payload.

        ``stream`` is always ``False``: the full response arrives in a
        single JSON object rather than a server-sent-event stream.
        """
        system_prompt = _SYSTEM_PROMPT.format(
            source=source.display_name,
            target=target.display_name,
        )
        return {
            "model": self._model,
            "stream": False,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ],
            "options": {
                "temperature": _TEMPERATURE,
                "num_predict": _DEFAULT_NUM_PREDICT,
            },
        }
