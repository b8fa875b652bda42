"""Topic sentiment tagging — keyword rules per service topic (CPU, instant).

Six fixed topics are scored per call. For each topic the positive rule is
tried first, then the negative rule, then the bare-mention rule (neutral).
A topic gets at most one sentiment per call. "Overall" is judged from
general satisfaction wording and always gets one (neutral by default);
the other topics are skipped when the call never mentions them.

Topic-specific rules only look at the clause that follows the topic keyword,
up to the end of the sentence, a contrast word ("but", "लेकिन") or the next
topic, so "SEO was poor but the website was fantastic" scores the two apart.
Hindi keywords cover the common code-switched answers ("website अच्छी है").
"""

import re
from typing import NamedTuple, Optional

from config.schemas import TopicSentiment

TOPIC_NAMES = ["Website", "SEO", "Social Media", "Content", "Marketing", "Overall"]
OVERALL = "Overall"


def _words(english: list[str], hindi: list[str] | None = None) -> str:
    """Alternation group: English terms on word boundaries, Hindi terms as-is.

    Devanagari vowel signs are not word characters to `re`, so \\b cannot be
    used around Hindi terms.
    """
    parts = [rf"\b(?:{'|'.join(english)})\b"] if english else []
    parts.extend(hindi or [])
    return f"(?:{'|'.join(parts)})"


_WEBSITE = _words([r"websites?", r"web\s+site"], ["वेबसाइट"])
_SEO = _words(["seo"])
_SOCIAL_MEDIA = _words([r"social[\s-]*media"], ["सोशल मीडिया"])
_CONTENT = _words(["content"], ["कंटेंट"])
_MARKETING = _words(["marketing"], ["मार्केटिंग"])

# A sentiment word belongs to the nearest topic before it: the window ends at
# sentence punctuation (danda included), a contrast word, or another topic
_CLAUSE_BREAK = "|".join([
    r"\b(?:but|however|although|though|whereas)\b", "लेकिन", "मगर", "किंतु",
    _WEBSITE, _SEO, _SOCIAL_MEDIA, _CONTENT, _MARKETING,
])
_SAME_CLAUSE = rf"(?:(?!{_CLAUSE_BREAK})[^.!?।])*?"

_PRAISE = _words(
    ["good", "great", "excellent", "amazing", "wonderful", "fantastic", "perfect", r"well\s+done"],
    ["अच्छा", "अच्छी", "अच्छे", "बढ़िया", "शानदार"],
)
_COMPLAINT = _words(
    ["bad", "poor", "terrible", "awful", "horrible", "disappointing"],
    ["खराब", "बुरा", "बुरी", "बेकार"],
)

_OVERALL_POSITIVE = _words(
    ["satisfied", "happy", "pleased", "good", "great", "excellent", r"well\s+done",
     r"everything\s+was\s+good", r"no\s+issues"],
    ["(?<!अ)संतुष्ट", "(?<!ना)खुश", "अच्छा", "अच्छी", "बढ़िया"],
)
_OVERALL_NEGATIVE = _words(
    ["dissatisfied", "unhappy", "disappointed", "frustrated", "bad", "poor", "issues", "problems"],
    ["असंतुष्ट", "नाखुश", "खराब", "बुरा", "समस्या", "परेशानी"],
)


class TopicRule(NamedTuple):
    name: str
    positive: list[re.Pattern]
    negative: list[re.Pattern]
    mention: Optional[re.Pattern]


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _topic_rule(name: str, topic: str, extra_positive: list[str] | None = None,
                extra_mention: str | None = None) -> TopicRule:
    positive = [_compile(f"{topic}{_SAME_CLAUSE}{_PRAISE}")]
    positive.extend(_compile(p) for p in extra_positive or [])
    mention = topic if extra_mention is None else f"(?:{topic}|{extra_mention})"
    return TopicRule(
        name=name,
        positive=positive,
        negative=[_compile(f"{topic}{_SAME_CLAUSE}{_COMPLAINT}")],
        mention=_compile(mention),
    )


TOPIC_RULES: list[TopicRule] = [
    _topic_rule("Website", _WEBSITE),
    _topic_rule(
        "SEO",
        _SEO,
        extra_positive=[
            rf"\bgoogle\b{_SAME_CLAUSE}\b(?:see|visible|appear|show|find)",
            rf"\bsearch\b{_SAME_CLAUSE}\b(?:result|appear|visible)",
        ],
        extra_mention=_words(["google", "search"], ["गूगल"]),
    ),
    _topic_rule("Social Media", _SOCIAL_MEDIA),
    _topic_rule("Content", _CONTENT),
    _topic_rule("Marketing", _MARKETING),
    TopicRule(
        name=OVERALL,
        positive=[_compile(_OVERALL_POSITIVE)],
        negative=[_compile(_OVERALL_NEGATIVE)],
        mention=None,
    ),
]


def score_topic(rule: TopicRule, text: str) -> TopicSentiment | None:
    """Sentiment for one topic, or None when the topic contributes nothing."""
    if any(p.search(text) for p in rule.positive):
        return TopicSentiment.POSITIVE
    if any(p.search(text) for p in rule.negative):
        return TopicSentiment.NEGATIVE
    if rule.mention is None:
        # Overall always counts
        return TopicSentiment.NEUTRAL
    if rule.mention.search(text):
        return TopicSentiment.NEUTRAL
    return None


def classify_topics(text: str) -> dict[str, TopicSentiment]:
    """Tag each topic in the text as positive/negative/neutral.

    Returns:
        {topic_name: sentiment} for every topic that contributed, in
        TOPIC_NAMES order. "Overall" is always present.
    """
    text = text or ""
    result = {}
    for rule in TOPIC_RULES:
        sentiment = score_topic(rule, text)
        if sentiment is not None:
            result[rule.name] = sentiment
    return result
