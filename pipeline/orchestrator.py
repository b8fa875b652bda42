"""Survey analytics pipeline — call executions in, AnalyticsSummary out.

Pipeline stages per completed call:
  1. Normalize the conversation payload into text
  2. Extract the NPS rating
  3. Tag topic sentiment
  4. Tag language
  5. Bucket the call duration

The per-call insights are folded into an immutable accumulator and turned
into the summary in one place. Nothing is cached between runs: every call to
compute_survey_analytics recomputes the whole snapshot.
"""

import math
from functools import reduce
from typing import Any, Iterable, NamedTuple

from loguru import logger

from analysis.duration import bucket_duration
from analysis.language_tagging import classify_language
from analysis.rating import MAX_RATING, extract_rating
from analysis.topic_sentiment import TOPIC_NAMES, classify_topics
from analysis.transcript import normalize_transcript
from config.schemas import (
    AnalyticsSummary,
    CallExecutionRecord,
    CallInsight,
    CallStatus,
    DurationBucket,
    DurationBuckets,
    LanguageTag,
    LanguageUsage,
    RatingBin,
    TopicSentiment,
    TopicTally,
)

_SENTIMENTS = (TopicSentiment.POSITIVE, TopicSentiment.NEGATIVE, TopicSentiment.NEUTRAL)
_LANGUAGES = (LanguageTag.ENGLISH, LanguageTag.HINDI, LanguageTag.BOTH)
_BUCKETS = (DurationBucket.SHORT, DurationBucket.MEDIUM, DurationBucket.LONG)
_OVERALL_INDEX = TOPIC_NAMES.index("Overall")


class _Accumulator(NamedTuple):
    """Running totals. Every field is a tuple, so each fold step builds a new one."""
    total_calls: int = 0
    rated_calls: int = 0
    rating_sum: int = 0
    histogram: tuple[int, ...] = (0,) * (MAX_RATING + 1)
    # one (positive, negative, neutral) triple per topic, TOPIC_NAMES order
    topics: tuple[tuple[int, int, int], ...] = ((0, 0, 0),) * len(TOPIC_NAMES)
    languages: tuple[int, int, int] = (0, 0, 0)
    durations: tuple[int, int, int] = (0, 0, 0)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent(part: int, whole: int) -> int:
    return _round_half_up(100 * part / whole) if whole > 0 else 0


def _bump(counts: tuple[int, ...], index: int) -> tuple[int, ...]:
    return counts[:index] + (counts[index] + 1,) + counts[index + 1:]


def _coerce_record(raw: Any) -> CallExecutionRecord:
    return raw if isinstance(raw, CallExecutionRecord) else CallExecutionRecord.from_api(raw)


def analyze_execution(record: CallExecutionRecord) -> CallInsight:
    """Run every classifier over one call execution."""
    text = normalize_transcript(record.conversation, record.transcript)
    return CallInsight(
        record_id=record.id,
        rating=extract_rating(text),
        language=classify_language(text),
        duration_bucket=bucket_duration(record.duration_seconds),
        topics=classify_topics(text),
    )


def _fold(acc: _Accumulator, insight: CallInsight) -> _Accumulator:
    rated = insight.rating is not None

    topics = acc.topics
    for i, name in enumerate(TOPIC_NAMES):
        sentiment = insight.topics.get(name)
        if sentiment is not None:
            topics = topics[:i] + (_bump(topics[i], _SENTIMENTS.index(sentiment)),) + topics[i + 1:]

    durations = acc.durations
    if insight.duration_bucket is not None:
        durations = _bump(durations, _BUCKETS.index(insight.duration_bucket))

    return acc._replace(
        total_calls=acc.total_calls + 1,
        rated_calls=acc.rated_calls + (1 if rated else 0),
        rating_sum=acc.rating_sum + (insight.rating if rated else 0),
        histogram=_bump(acc.histogram, insight.rating) if rated else acc.histogram,
        topics=topics,
        languages=_bump(acc.languages, _LANGUAGES.index(insight.language)),
        durations=durations,
    )


def _summarize(acc: _Accumulator) -> AnalyticsSummary:
    rated = acc.rated_calls
    average = math.floor(acc.rating_sum / rated * 10 + 0.5) / 10 if rated > 0 else 0.0

    return AnalyticsSummary(
        total_calls=acc.total_calls,
        average_rating=average,
        satisfaction_rate=_percent(acc.topics[_OVERALL_INDEX][0], rated),
        response_rate=_percent(rated, acc.total_calls),
        rating_histogram=[
            RatingBin(rating=r, count=count, percent=_percent(count, rated))
            for r, count in enumerate(acc.histogram)
        ],
        topic_tallies=[
            TopicTally(name=name, positive=pos, negative=neg, neutral=neu, total=pos + neg + neu)
            for name, (pos, neg, neu) in zip(TOPIC_NAMES, acc.topics)
        ],
        language_usage=LanguageUsage(**dict(zip((t.value for t in _LANGUAGES), acc.languages))),
        duration_buckets=DurationBuckets(**dict(zip((b.value for b in _BUCKETS), acc.durations))),
    )


def analyze_completed(records: Iterable[Any]) -> list[CallInsight]:
    """Insights for the completed calls in a snapshot, in input order."""
    parsed = [_coerce_record(r) for r in records]
    return [analyze_execution(r) for r in parsed if r.status == CallStatus.COMPLETED]


def summarize_insights(insights: Iterable[CallInsight]) -> AnalyticsSummary:
    """Fold per-call insights into the analytics summary."""
    return _summarize(reduce(_fold, insights, _Accumulator()))


def compute_survey_analytics(records: Iterable[Any]) -> AnalyticsSummary:
    """Compute the survey analytics summary for a snapshot of call executions.

    Args:
        records: CallExecutionRecord instances or raw execution log dicts

    Returns:
        AnalyticsSummary over the completed calls; all zeros when there are none
    """
    records = list(records)
    insights = analyze_completed(records)
    summary = summarize_insights(insights)

    logger.info(
        f"Survey analytics: {summary.total_calls}/{len(records)} completed calls, "
        f"response_rate={summary.response_rate}%, avg_rating={summary.average_rating}, "
        f"satisfaction={summary.satisfaction_rate}%"
    )
    return summary
