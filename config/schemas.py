"""SurveyPulse Pydantic schemas — call execution input and analytics output definitions."""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── CALL EXECUTION INPUT ──

class CallStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class CallExecutionRecord(BaseModel):
    """One call execution as returned by the execution log API.

    Validators coerce instead of rejecting: a sparse or malformed record
    still becomes a record (usually with status 'unknown' or no duration).
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Execution ID")
    agent_id: Optional[str] = None
    phone_number: str = Field(default="", description="Recipient phone number")
    status: CallStatus = CallStatus.UNKNOWN
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    duration_seconds: Optional[float] = Field(None, description="Call length; None when unknown")
    recording_url: Optional[str] = None
    conversation: Any = Field(
        None, description="Event list ({'data': [...]} or bare list), plain string, or arbitrary JSON"
    )
    transcript: Optional[str] = Field(None, description="Plain transcript used when conversation is unusable")

    @field_validator("id", "phone_number", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("agent_id", "recording_url", "transcript", mode="before")
    @classmethod
    def _optional_str(cls, value):
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        return None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        if isinstance(value, CallStatus):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            try:
                return CallStatus(normalized)
            except ValueError:
                pass
        return CallStatus.UNKNOWN

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value):
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def _coerce_duration(cls, value):
        if value is None or isinstance(value, bool):
            return None
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(seconds) or seconds < 0:
            return None
        return seconds

    @classmethod
    def from_api(cls, raw: Any) -> "CallExecutionRecord":
        """Build a record from an execution log payload (summary merged with detail).

        Accepts the API's field names (execution_id, recipient_phone_number,
        duration) as well as the model's own. Never raises.
        """
        if isinstance(raw, CallExecutionRecord):
            return raw
        if not isinstance(raw, dict):
            logger.warning(f"Execution payload is {type(raw).__name__}, not an object — treating as unknown")
            return cls()

        duration = raw.get("duration")
        if duration is None:
            duration = raw.get("duration_seconds")

        return cls(
            id=raw.get("execution_id") or raw.get("id") or "",
            agent_id=raw.get("agent_id"),
            phone_number=raw.get("recipient_phone_number") or raw.get("phone_number") or "",
            status=raw.get("status"),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
            duration_seconds=duration,
            recording_url=raw.get("recording_url"),
            conversation=raw.get("conversation"),
            transcript=raw.get("transcript"),
        )


# ── PER-CALL CLASSIFIER OUTPUT ──

class LanguageTag(str, Enum):
    ENGLISH = "english"
    HINDI = "hindi"
    BOTH = "both"


class DurationBucket(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class TopicSentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class CallInsight(BaseModel):
    """Everything the classifiers derived from one completed call."""
    model_config = ConfigDict(frozen=True)

    record_id: str
    rating: Optional[int] = Field(None, ge=0, le=10, description="NPS rating, None when not found")
    language: LanguageTag
    duration_bucket: Optional[DurationBucket] = None
    topics: dict[str, TopicSentiment] = Field(
        default_factory=dict,
        description="Sentiment per topic that contributed a tally for this call",
    )


# ── ANALYTICS SUMMARY OUTPUT ──

class RatingBin(BaseModel):
    rating: int = Field(ge=0, le=10)
    count: int = Field(ge=0)
    percent: int = Field(ge=0, description="Share of rated calls, rounded half-up")


class TopicTally(BaseModel):
    name: str
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    total: int = 0


class LanguageUsage(BaseModel):
    english: int = 0
    hindi: int = 0
    both: int = 0


class DurationBuckets(BaseModel):
    short: int = 0
    medium: int = 0
    long: int = 0


class AnalyticsSummary(BaseModel):
    """Survey analytics for one snapshot of call executions."""
    total_calls: int = Field(description="Completed calls in the snapshot")
    average_rating: float = Field(description="Mean NPS of rated calls, one decimal")
    satisfaction_rate: int = Field(description="Overall-positive calls as % of rated calls")
    response_rate: int = Field(description="Rated calls as % of completed calls")
    rating_histogram: list[RatingBin] = Field(description="Exactly 11 bins, ratings 0..10")
    topic_tallies: list[TopicTally] = Field(
        description="Website, SEO, Social Media, Content, Marketing, Overall — in that order"
    )
    language_usage: LanguageUsage
    duration_buckets: DurationBuckets
