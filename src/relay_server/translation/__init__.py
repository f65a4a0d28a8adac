"""Translation layer for relay_server.

Every chat message is rendered into each supported language before it is
stored and broadcast.  The layer is intentionally *non-authoritative*: a
failed or slow backend never blocks delivery; it only degrades the
translated entries to the original text.

Package structure
-----------------
languages.py  LanguageCode            — the closed ko/ja/en enumeration.
resolver.py   detect / transliterate  — script-based language detection and
              jamo handling.
config.py     TranslationLayerConfig  — frozen backend settings.
base.py       Translator              — backend protocol and error types.
ollama.py     OllamaTranslator        — local LLM backend (httpx async).
libre.py      LibreTranslateTranslator — LibreTranslate-style HTTP backend.
validator.py  OutputValidator         — cleans raw backend output.
service.py    TranslationPipeline     — orchestrates the above; the single
              entry-point used by the gateway.

Typical call flow (inside GatewayCoordinator.send_message)
----------------------------------------------------------
1. ``pipeline.translate(text)``
2. resolver detects the source language and stores ``text`` under it
3. jamo-only Korean → romanised fallback, no backend call
4. otherwise each target is requested concurrently from the backend
5. any per-target failure → original text for that target
"""

from relay_server.translation.languages import SUPPORTED_LANGUAGES, LanguageCode
from relay_server.translation.service import TranslationPipeline, build_translator

__all__ = ["LanguageCode", "SUPPORTED_LANGUAGES", "TranslationPipeline", "build_translator"]
