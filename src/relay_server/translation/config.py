"""Translation layer configuration.

``TranslationLayerConfig`` is a frozen dataclass built once from the
``[translation]`` section of the server configuration when the application
starts.  It is never mutated at runtime; the translator backend and the
pipeline both read from the same instance.

Backends
--------
``ollama``          Local LLM via the Ollama ``/api/chat`` endpoint.  The
                    model is prompted to act as a translation engine.
``libretranslate``  A LibreTranslate-compatible ``/translate`` endpoint.
                    ``model`` is ignored; ``api_key`` is sent when set.
"""

from __future__ import annotations

from dataclasses import dataclass

from relay_server.config import TranslationSettings

SUPPORTED_BACKENDS = ("ollama", "libretranslate")


@dataclass(frozen=True)
class TranslationLayerConfig:
    """Immutable configuration for the translation layer.

    Attributes:
        enabled:          Master switch.  When ``False`` no backend is built
                          and every target language falls back to the
                          original text.
        backend:          One of :data:`SUPPORTED_BACKENDS`.
        base_url:         Base URL of the backend service.  Endpoint paths
                          are appended by the backend class.
        model:            Model tag for LLM backends (e.g. ``"gemma2:2b"``).
        api_key:          Optional credential for hosted backends.
        timeout_seconds:  Per-request HTTP timeout.  On expiry that target
                          language falls back to the original text.
        max_output_chars: Hard ceiling on a single translated string;
                          longer output is treated as malformed.
    """

    enabled: bool
    backend: str
    base_url: str
    model: str
    api_key: str
    timeout_seconds: float
    max_output_chars: int

    @classmethod
    def from_settings(cls, settings: TranslationSettings) -> TranslationLayerConfig:
        """Freeze the mutable ``[translation]`` settings section."""
        return cls.from_dict(
            {
                "enabled": settings.enabled,
                "backend": settings.backend,
                "base_url": settings.base_url,
                "model": settings.model,
                "api_key": settings.api_key,
                "timeout_seconds": settings.timeout_seconds,
                "max_output_chars": settings.max_output_chars,
            }
        )

    @classmethod
    def from_dict(cls, data: dict) -> TranslationLayerConfig:
        """Parse a translation config mapping.

        Missing optional fields fall back to safe defaults so that a minimal
        ``{"enabled": true}`` mapping is sufficient for basic operation.

        Raises:
            ValueError: If ``backend`` names an unknown backend.
        """
        backend = str(data.get("backend", "ollama")).lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unknown translation backend: {backend!r}")

        return cls(
            enabled=bool(data.get("enabled", False)),
            backend=backend,
            base_url=str(data.get("base_url", "http://localhost:11434")),
            model=str(data.get("model", "gemma2:2b")),
            api_key=str(data.get("api_key", "") or ""),
            timeout_seconds=float(data.get("timeout_seconds", 10.0)),
            max_output_chars=int(data.get("max_output_chars", 1000)),
        )
