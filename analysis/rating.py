"""NPS rating extraction — ordered regex cascade over the normalized transcript.

Rules run from most specific ("rate 8 out of 10") to most generic (any bare
number). Each rule's first capture group is the candidate rating. A candidate
outside 0..10 is discarded and the next rule is tried, so a stray "45 degrees"
or a phone number cannot become a rating.
"""

import re
from typing import NamedTuple

from loguru import logger

MIN_RATING = 0
MAX_RATING = 10

# A whole number: never starts or ends in the middle of a longer digit run
_NUM = r"(?<!\d)(\d+)(?!\d)"
# Bounded filler within one sentence, so two-number rules stay linear on long transcripts
_GAP = r"[^.!?\n]{0,60}?"


class RatingRule(NamedTuple):
    name: str
    pattern: re.Pattern


def _rule(name: str, pattern: str) -> RatingRule:
    return RatingRule(name, re.compile(pattern, re.IGNORECASE | re.DOTALL))


RATING_RULES: list[RatingRule] = [
    _rule("rate_out_of", rf"\brate{_GAP}{_NUM}{_GAP}\bout\s+of\s*(\d+)"),
    _rule("rating", rf"\brating.*?{_NUM}"),
    _rule("score", rf"\bscore.*?{_NUM}"),
    _rule("stars", rf"{_NUM}.*?\bstars?\b"),
    _rule("out_of", rf"{_NUM}{_GAP}\bout\s+of\s*(\d+)"),
    _rule("give", rf"\bgive.*?{_NUM}"),
    _rule("nps", rf"\bnps.*?{_NUM}"),
    _rule("satisfaction", rf"\bsatisfaction.*?{_NUM}"),
    _rule("on_a_scale", rf"{_NUM}.*?\bscale\b"),
    _rule("scale", rf"\bscale.*?{_NUM}"),
    _rule("around", rf"\baround.*?{_NUM}"),
    _rule("bare_number", _NUM),
]


def _in_range(value: int) -> bool:
    return MIN_RATING <= value <= MAX_RATING


def match_rating_rule(text: str, rules: list[RatingRule] | None = None) -> tuple[str, int] | None:
    """Run the cascade and report which rule produced the rating.

    Returns:
        (rule_name, rating) for the first rule with an in-range candidate,
        or None when no rule yields a valid rating
    """
    if not text:
        return None

    for rule in rules or RATING_RULES:
        match = rule.pattern.search(text)
        if not match:
            continue
        digits = match.group(1).lstrip("0") or "0"
        # long digit runs (phone numbers, IDs) are never ratings
        candidate = int(digits) if len(digits) <= 2 else MAX_RATING + 1
        if _in_range(candidate):
            return rule.name, candidate
        logger.debug(f"Rating rule '{rule.name}' captured {match.group(1)} (out of range) — trying next rule")

    return None


def extract_rating(text: str) -> int | None:
    """Extract a 0-10 satisfaction rating from conversation text."""
    result = match_rating_rule(text)
    return result[1] if result else None
