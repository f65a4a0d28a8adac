"""Translation pipeline: one chat message in, one complete language map out.

``TranslationPipeline`` is the single public entry-point for the
translation layer.  It combines the script resolver with a translator
backend to produce the ``translations`` map stored on every chat message.

Caller contract
---------------
``translate(text)`` always returns a mapping with exactly one entry per
supported language (``ko``, ``ja``, ``en``), every value non-empty, and
never raises for backend trouble:

- The detected source language maps to ``text`` verbatim.  It is never
  sent to the backend and never overwritten.
- Jamo-only Korean input (``ㅋㅋㅋ``) skips the backend entirely; every
  other language gets the romanised form.
- Otherwise each target language is requested independently.  A failure
  for one target (timeout, connection error, malformed response) falls
  back to the original text for that target only and is logged.

This is the graceful-degradation guarantee: translation is enrichment,
and a message is always delivered even when every backend call fails.

Concurrency
-----------
Target languages have no dependency on each other, so their requests are
issued concurrently and the pipeline resumes once every slot is filled.
Callers never observe a partially populated map.
"""

from __future__ import annotations

import asyncio
import logging

from relay_server.translation import resolver
from relay_server.translation.base import Translator, TranslatorError
from relay_server.translation.config import TranslationLayerConfig
from relay_server.translation.languages import SUPPORTED_LANGUAGES, LanguageCode
from relay_server.translation.libre import LibreTranslateTranslator
from relay_server.translation.ollama import OllamaTranslator
from relay_server.translation.validator import OutputValidator

logger = logging.getLogger(__name__)


def build_translator(config: TranslationLayerConfig) -> Translator | None:
    """Instantiate the configured backend, or ``None`` when disabled."""
    if not config.enabled:
        logger.info("Translation disabled; messages will carry the original text only")
        return None

    validator = OutputValidator(max_output_chars=config.max_output_chars)
    if config.backend == "libretranslate":
        translator: Translator = LibreTranslateTranslator(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            validator=validator,
            api_key=config.api_key,
        )
    else:
        translator = OllamaTranslator(
            base_url=config.base_url,
            model=config.model,
            timeout_seconds=config.timeout_seconds,
            validator=validator,
        )

    logger.info(
        "Translation backend ready (backend=%s, url=%s, timeout=%.1fs)",
        config.backend,
        config.base_url,
        config.timeout_seconds,
    )
    return translator


class TranslationPipeline:
    """Produces the per-language text map for a chat message.

    Attributes:
        _translator: Backend used for real translations; ``None`` disables
                     backend calls (every target falls back to the original).
    """

    def __init__(self, translator: Translator | None) -> None:
        self._translator = translator

    @property
    def translator(self) -> Translator | None:
        return self._translator

    async def translate(self, text: str) -> dict[str, str]:
        """Render ``text`` into every supported language.

        Returns:
            ``{language_code: text}`` for all of :data:`SUPPORTED_LANGUAGES`,
            in that order.
        """
        source = resolver.detect(text)
        targets = [language for language in SUPPORTED_LANGUAGES if language is not source]

        result: dict[LanguageCode, str] = {source: text}

        if source is LanguageCode.KO and resolver.is_ambiguous_script(text):
            romanised = resolver.transliterate(text)
            for target in targets:
                result[target] = romanised
        elif self._translator is None:
            for target in targets:
                result[target] = text
        else:
            translator = self._translator
            request_text = resolver.sanitize_for_translation_request(text, source)
            outputs = await asyncio.gather(
                *(
                    _translate_one(translator, request_text, text, source, target)
                    for target in targets
                )
            )
            result.update(zip(targets, outputs))

        return {language.value: result[language] for language in SUPPORTED_LANGUAGES}


async def _translate_one(
    translator: Translator,
    request_text: str,
    original: str,
    source: LanguageCode,
    target: LanguageCode,
) -> str:
    """Translate into one target, falling back to ``original`` on any failure."""
    try:
        translated = await translator.translate(request_text, source, target)
    except TranslatorError as exc:
        logger.warning(
            "TranslationPipeline: %s -> %s failed, using original text (%s)",
            source.value,
            target.value,
            exc,
        )
        return original
    except Exception:
        logger.exception(
            "TranslationPipeline: unexpected backend error for %s -> %s",
            source.value,
            target.value,
        )
        return original

    translated_text = "" if translated is None else str(translated)
    if not translated_text.strip():
        logger.warning(
            "TranslationPipeline: empty %s -> %s result, using original text",
            source.value,
            target.value,
        )
        return original
    return translated_text
