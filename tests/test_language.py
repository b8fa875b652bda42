"""Tests for script-based Hindi / English language tagging."""

from analysis.language_tagging import (
    classify_language,
    has_devanagari,
    has_latin,
    language_distribution,
)
from config.schemas import LanguageTag


class TestClassifyLanguage:
    def test_english(self):
        assert classify_language("The website is great") == LanguageTag.ENGLISH

    def test_hindi(self):
        assert classify_language("वेबसाइट अच्छी है") == LanguageTag.HINDI

    def test_both(self):
        assert classify_language("website अच्छा है") == LanguageTag.BOTH

    def test_empty_defaults_to_english(self):
        assert classify_language("") == LanguageTag.ENGLISH

    def test_digits_only_defaults_to_english(self):
        assert classify_language("8 10 9") == LanguageTag.ENGLISH

    def test_romanized_hindi_is_english(self):
        assert classify_language("bahut accha laga") == LanguageTag.ENGLISH

    def test_hindi_with_digits(self):
        assert classify_language("मैं 9 दूंगा") == LanguageTag.HINDI


class TestScriptDetection:
    def test_vowel_sign_alone(self):
        assert has_devanagari("ा")

    def test_virama(self):
        assert has_devanagari("्")

    def test_anusvara_and_candrabindu(self):
        assert has_devanagari("ं")
        assert has_devanagari("ँ")

    def test_devanagari_digits_not_letters(self):
        assert not has_devanagari("१२३")

    def test_non_ascii_latin_not_english(self):
        assert not has_latin("éü")

    def test_empty(self):
        assert not has_devanagari("")
        assert not has_latin("")


def test_language_distribution():
    messages = [
        {"role": "assistant", "content": "How was the website?"},
        {"role": "user", "content": "अच्छी थी"},
        {"role": "user", "content": "website अच्छी थी"},
        {"role": "user", "content": "  "},
        {"role": "user", "content": None},
    ]
    assert language_distribution(messages) == {"english": 1, "hindi": 1, "both": 1}


def test_language_distribution_empty():
    assert language_distribution([]) == {}
