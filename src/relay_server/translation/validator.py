"""Output validator for translator backends.

``OutputValidator`` takes the raw text a backend returned and decides
whether it is usable as a translation.  Unusable output is rejected
(returning ``None``) so the backend can report a malformed response and the
pipeline falls back to the original message.

Validation pipeline (applied in order)
---------------------------------------
1. **Empty check**: blank string → ``None``.
2. **Multi-line check**: when the source text is a single line, LLM
   backends sometimes append commentary on following lines.  Only the
   first non-empty line is kept.
3. **Quote stripping**: models often wrap output in ``"..."`` even when
   told not to.  Wrapping quotes are removed unless the source text was
   itself quoted.
4. **Max-length enforcement**: output longer than ``max_output_chars`` is
   rejected rather than truncated; a cut-off translation is worse than
   the original text.
5. **Final empty check**: cleaning may have left nothing behind.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("「", "」"))


def _is_wrapped(text: str) -> bool:
    return len(text) >= 2 and any(
        text.startswith(open_) and text.endswith(close) for open_, close in _QUOTE_PAIRS
    )


class OutputValidator:
    """Validates and cleans raw backend output.

    Attributes:
        _max_output_chars: Hard ceiling on translated output length.
    """

    def __init__(self, *, max_output_chars: int) -> None:
        if max_output_chars < 1:
            raise ValueError("max_output_chars must be >= 1")
        self._max_output_chars = max_output_chars

    def validate(self, raw: str, *, source_text: str) -> str | None:
        """Validate and clean ``raw`` produced for ``source_text``.

        Returns:
            Cleaned translation on success, ``None`` if validation fails.
        """
        # ── 1. Empty check ────────────────────────────────────────────────────
        if not raw or not raw.strip():
            return None

        text = raw.strip()

        # ── 2. Multi-line check ───────────────────────────────────────────────
        if "\n" in text and "\n" not in source_text.strip():
            text = next((line.strip() for line in text.splitlines() if line.strip()), "")

        # ── 3. Quote stripping ────────────────────────────────────────────────
        if _is_wrapped(text) and not _is_wrapped(source_text.strip()):
            text = text[1:-1].strip()

        # ── 4. Max-length enforcement ─────────────────────────────────────────
        if len(text) > self._max_output_chars:
            logger.warning(
                "OutputValidator: rejected output exceeding max_output_chars (%d > %d).",
                len(text),
                self._max_output_chars,
            )
            return None

        # ── 5. Final empty check ─────────────────────────────────────────────
        return text if text else None
