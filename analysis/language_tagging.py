"""Language tagging for Hindi / English / code-switched survey calls.

Script-based rather than model-based: a call is Hindi if any Devanagari
letter, vowel sign, virama, anusvara or candrabindu appears, English if any
ASCII Latin letter appears, and "both" when the respondent mixes them.
Romanized Hindi ("bahut accha") therefore counts as English.
"""

import re
from collections import Counter

from config.schemas import LanguageTag

# Independent vowels + consonants, dependent vowel signs, virama, anusvara, candrabindu
_DEVANAGARI = re.compile("[\u0905-\u0939\u093E-\u094C\u094D\u0902\u0901]")
_LATIN = re.compile("[a-zA-Z]")


def has_devanagari(text: str) -> bool:
    return bool(text) and _DEVANAGARI.search(text) is not None


def has_latin(text: str) -> bool:
    return bool(text) and _LATIN.search(text) is not None


def classify_language(text: str) -> LanguageTag:
    """Classify text as english, hindi, or both. Defaults to english."""
    hindi = has_devanagari(text)
    english = has_latin(text)

    if hindi and english:
        return LanguageTag.BOTH
    if hindi:
        return LanguageTag.HINDI
    return LanguageTag.ENGLISH


def language_distribution(messages: list[dict]) -> dict[str, int]:
    """Count message languages in a readable conversation.

    Args:
        messages: Chat messages with a 'content' field

    Returns:
        {language: count} over messages that have text
    """
    counts = Counter(
        classify_language(m["content"]).value
        for m in messages
        if isinstance(m, dict) and isinstance(m.get("content"), str) and m["content"].strip()
    )
    return dict(counts)
