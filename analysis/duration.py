"""Call duration bucketing: short (< 3 min), medium (3-5 min), long (5 min +)."""

import math

from config.schemas import DurationBucket

SHORT_LIMIT_SECONDS = 180
MEDIUM_LIMIT_SECONDS = 300


def bucket_duration(seconds: float | None) -> DurationBucket | None:
    """Map a call duration to its bucket; None when the duration is unknown."""
    if seconds is None or isinstance(seconds, bool):
        return None
    try:
        seconds = float(seconds)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None

    if seconds < SHORT_LIMIT_SECONDS:
        return DurationBucket.SHORT
    if seconds < MEDIUM_LIMIT_SECONDS:
        return DurationBucket.MEDIUM
    return DurationBucket.LONG
