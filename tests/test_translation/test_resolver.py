"""Unit tests for the script-based language resolver."""

import pytest

from relay_server.translation import resolver
from relay_server.translation.languages import LanguageCode


@pytest.mark.unit
class TestDetect:
    @pytest.mark.parametrize(
        "text",
        ["안녕", "안녕하세요 everyone", "ㅋㅋㅋ", "ㅠㅠ", "오늘 こんにちは"],
    )
    def test_any_hangul_is_korean(self, text):
        assert resolver.detect(text) is LanguageCode.KO

    @pytest.mark.parametrize("text", ["こんにちは", "カタカナ", "ｶﾀｶﾅ", "今日はいい天気"])
    def test_kana_is_japanese(self, text):
        assert resolver.detect(text) is LanguageCode.JA

    @pytest.mark.parametrize("text", ["\uffbb\uffbb\uffbb", "\uffa0", "ok \uffd7\uffd7"])
    def test_halfwidth_hangul_is_korean(self, text):
        assert resolver.detect(text) is LanguageCode.KO

    @pytest.mark.parametrize("text", ["hello", "", "1234 !?", "漢字", "🙂"])
    def test_everything_else_is_english(self, text):
        # Kanji without kana carries no script signal for Japanese.
        assert resolver.detect(text) is LanguageCode.EN


@pytest.mark.unit
class TestIsAmbiguousScript:
    @pytest.mark.parametrize(
        "text", ["ㅋㅋㅋ", "ㅠㅠ", "ㅇㅇ!", " ㅎㅎ ㅋㅋ... ", "ㅋㅋ~^^", "\uffbb\uffbb!"]
    )
    def test_jamo_with_filler_is_ambiguous(self, text):
        assert resolver.is_ambiguous_script(text) is True

    @pytest.mark.parametrize("text", ["안녕ㅋㅋ", "lolㅋㅋ", "ㅋㅋ2", "", "   ", "!!!"])
    def test_anything_with_content_or_no_jamo_is_not(self, text):
        assert resolver.is_ambiguous_script(text) is False


@pytest.mark.unit
class TestTransliterate:
    def test_laughter(self):
        assert resolver.transliterate("ㅋㅋㅋ") == "kkk"

    def test_vowels(self):
        assert resolver.transliterate("ㅠㅠ") == "yuyu"

    def test_ieung_uses_final_value(self):
        assert resolver.transliterate("ㅇㅇ") == "ngng"

    def test_halfwidth_jamo(self):
        # U+FFBB and U+FFD7 are the half-width forms of ㅋ and ㅠ.
        assert resolver.transliterate("\uffbb\uffbb\uffbb") == "kkk"
        assert resolver.transliterate("\uffd7\uffd7") == "yuyu"

    def test_unmapped_characters_pass_through(self):
        assert resolver.transliterate("안녕 ㅎㅎ!") == "안녕 hh!"

    def test_every_modern_compatibility_jamo_is_mapped(self):
        modern = [chr(cp) for cp in range(0x3131, 0x3164)]
        assert set(modern) == set(resolver.JAMO_ROMANIZATION)


@pytest.mark.unit
class TestSanitizeForTranslationRequest:
    def test_mixed_korean_jamo_is_romanised(self):
        result = resolver.sanitize_for_translation_request("안녕ㅋㅋ", LanguageCode.KO)
        assert result == "안녕kk"

    def test_plain_korean_unchanged(self):
        assert resolver.sanitize_for_translation_request("안녕", LanguageCode.KO) == "안녕"

    def test_jamo_only_unchanged(self):
        assert resolver.sanitize_for_translation_request("ㅋㅋ", LanguageCode.KO) == "ㅋㅋ"

    def test_non_korean_source_unchanged(self):
        assert resolver.sanitize_for_translation_request("hi", LanguageCode.EN) == "hi"
