"""The closed set of languages every chat message is rendered into.

Adding a language is not a local change: the script detector in
``resolver.py``, the translator prompts, and the wire schema of stored
messages all enumerate these three members.
"""

from __future__ import annotations

from enum import Enum


class LanguageCode(str, Enum):
    """Supported message languages, valued by their ISO 639-1 code."""

    KO = "ko"
    JA = "ja"
    EN = "en"

    @property
    def display_name(self) -> str:
        """English name of the language, used in translator prompts."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[LanguageCode, str] = {
    LanguageCode.KO: "Korean",
    LanguageCode.JA: "Japanese",
    LanguageCode.EN: "English",
}

# Iteration order of this tuple is the key order of every translations map.
SUPPORTED_LANGUAGES: tuple[LanguageCode, ...] = (
    LanguageCode.KO,
    LanguageCode.JA,
    LanguageCode.EN,
)
