"""Script-based language resolution for chat messages.

This is deliberately *not* a statistical language identifier.  Only three
languages are supported and each one is written in a distinct script, so a
codepoint scan is fast, deterministic and sufficient:

- any Hangul codepoint            → Korean
- any Hiragana / Katakana codepoint → Japanese
- anything else                   → English

Korean is checked first, so mixed Korean/Japanese text resolves to Korean.

Jamo skeletons
--------------
Korean chat is full of bare jamo, the consonant and vowel components of
Hangul typed without composing them into syllable blocks (``ㅋㅋㅋ`` for
laughter, ``ㅠㅠ`` for crying, ``ㅇㅇ`` for "yep").  Translation backends
have nothing to work with on such input and return it unchanged, so the
pipeline treats it specially:

- :func:`is_ambiguous_script` flags text made *only* of jamo plus
  punctuation/whitespace; the pipeline then skips the backend entirely
  and shows :func:`transliterate` output in the other languages.
- :func:`sanitize_for_translation_request` handles the mixed case
  (``안녕ㅋㅋ``): each jamo is romanised before the text is sent to the
  backend, because stray jamo tend to leak through untranslated and spoil
  an otherwise correct result.  Only the outbound request is sanitised;
  the stored Korean entry is always the original text.
"""

from __future__ import annotations

import re
import unicodedata

from relay_server.translation.languages import LanguageCode

# Hangul syllables, conjoining jamo (+ extensions A/B), compatibility jamo
# and half-width jamo.
_HANGUL_PATTERN = re.compile(
    "[ᄀ-ᇿ㄰-㆏ꥠ-꥿가-힣ힰ-퟿ﾠ-ￜ]"
)

# Hiragana, Katakana, Katakana phonetic extensions and half-width Katakana.
_KANA_PATTERN = re.compile("[぀-ゟ゠-ヿㇰ-ㇿｦ-ﾟ]")

# Compatibility jamo block, the form produced by Korean keyboard layouts.
_JAMO_FIRST = "ㄱ"
_JAMO_LAST = "ㆎ"

# Half-width forms of the compatibility jamo; NFKC maps them onto that block.
_HALFWIDTH_JAMO_FIRST = "ﾡ"
_HALFWIDTH_JAMO_LAST = "ￜ"

# Revised Romanization values for the modern compatibility jamo
# (U+3131 ㄱ .. U+3163 ㅣ).  Consonants use their initial-position value,
# except ㅇ, which is silent as an initial and so takes its final value.
JAMO_ROMANIZATION: dict[str, str] = {
    # consonants
    "ㄱ": "g",
    "ㄲ": "kk",
    "ㄳ": "gs",
    "ㄴ": "n",
    "ㄵ": "nj",
    "ㄶ": "nh",
    "ㄷ": "d",
    "ㄸ": "tt",
    "ㄹ": "r",
    "ㄺ": "lg",
    "ㄻ": "lm",
    "ㄼ": "lb",
    "ㄽ": "ls",
    "ㄾ": "lt",
    "ㄿ": "lp",
    "ㅀ": "lh",
    "ㅁ": "m",
    "ㅂ": "b",
    "ㅃ": "pp",
    "ㅄ": "bs",
    "ㅅ": "s",
    "ㅆ": "ss",
    "ㅇ": "ng",
    "ㅈ": "j",
    "ㅉ": "jj",
    "ㅊ": "ch",
    "ㅋ": "k",
    "ㅌ": "t",
    "ㅍ": "p",
    "ㅎ": "h",
    # vowels
    "ㅏ": "a",
    "ㅐ": "ae",
    "ㅑ": "ya",
    "ㅒ": "yae",
    "ㅓ": "eo",
    "ㅔ": "e",
    "ㅕ": "yeo",
    "ㅖ": "ye",
    "ㅗ": "o",
    "ㅘ": "wa",
    "ㅙ": "wae",
    "ㅚ": "oe",
    "ㅛ": "yo",
    "ㅜ": "u",
    "ㅝ": "wo",
    "ㅞ": "we",
    "ㅟ": "wi",
    "ㅠ": "yu",
    "ㅡ": "eu",
    "ㅢ": "ui",
    "ㅣ": "i",
}


def _is_jamo(char: str) -> bool:
    """Return True for a standalone (compatibility or half-width) Hangul jamo."""
    if _JAMO_FIRST <= char <= _JAMO_LAST:
        return True
    return _HALFWIDTH_JAMO_FIRST <= char <= _HALFWIDTH_JAMO_LAST


def _is_filler(char: str) -> bool:
    """Whitespace, punctuation and symbols: characters with no lexical content."""
    if char.isspace():
        return True
    return unicodedata.category(char)[0] in ("P", "S", "Z")


def detect(text: str) -> LanguageCode:
    """Classify ``text`` into one of the three supported languages."""
    if _HANGUL_PATTERN.search(text):
        return LanguageCode.KO
    if _KANA_PATTERN.search(text):
        return LanguageCode.JA
    return LanguageCode.EN


def is_ambiguous_script(text: str) -> bool:
    """True when ``text`` is only jamo plus punctuation/whitespace.

    At least one jamo must be present; blank or punctuation-only text is not
    considered ambiguous Korean.
    """
    seen_jamo = False
    for char in text:
        if _is_jamo(char):
            seen_jamo = True
        elif not _is_filler(char):
            return False
    return seen_jamo


def transliterate(text: str) -> str:
    """Romanise every mapped jamo in ``text``; other characters pass through."""
    return "".join(
        JAMO_ROMANIZATION.get(unicodedata.normalize("NFKC", char), char) for char in text
    )


def sanitize_for_translation_request(text: str, source: LanguageCode) -> str:
    """Prepare ``text`` for a translator request.

    Only Korean text that mixes composed syllables with stray jamo is
    rewritten; everything else is returned unchanged.
    """
    if source is not LanguageCode.KO:
        return text
    if not any(_is_jamo(char) for char in text):
        return text
    if is_ambiguous_script(text):
        # Jamo-only input never reaches a translator; nothing to sanitise.
        return text
    return transliterate(text)
