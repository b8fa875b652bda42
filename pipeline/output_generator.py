"""Analytics export — JSON reports and flat CSVs for spreadsheets.

Exports:
- Analytics JSON:  summary + topic tallies + rating histogram (dashboard "Export Analytics")
- Execution JSON:  one raw execution, or all of them for an agent
- CSV:             topic tallies, rating histogram, one row per completed call

Accepts both pydantic models and raw dicts.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
from loguru import logger

from analysis.topic_sentiment import TOPIC_NAMES
from analysis.transcript import format_duration
from config.schemas import AnalyticsSummary, CallExecutionRecord, CallInsight


def _to_dict(obj) -> dict:
    """Convert a pydantic model or dict to a JSON-ready dict."""
    if isinstance(obj, (AnalyticsSummary, CallExecutionRecord, CallInsight)):
        return obj.model_dump(mode="json")
    return obj


def _write_json(data, output_path: str) -> str:
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    return output_path


# ── JSON exports ──


def build_analytics_export(summary, agent_id: str, timestamp: datetime | None = None) -> dict:
    """Assemble the analytics download payload."""
    timestamp = timestamp or datetime.now(timezone.utc)
    data = _to_dict(summary)
    return {
        "timestamp": timestamp.isoformat(),
        "agent_id": agent_id,
        "summary": data,
        "feedback_data": data.get("topic_tallies", []),
        "rating_data": data.get("rating_histogram", []),
    }


def analytics_filename(agent_id: str, timestamp: datetime | None = None) -> str:
    timestamp = timestamp or datetime.now(timezone.utc)
    return f"analytics-{agent_id}-{timestamp.date().isoformat()}.json"


def execution_filename(execution) -> str:
    data = _to_dict(execution)
    execution_id = data.get("execution_id") or data.get("id") or "unknown"
    return f"execution-{execution_id}.json"


def all_executions_filename(agent_id: str) -> str:
    return f"all-executions-{agent_id}.json"


def export_analytics_json(summary, agent_id: str, output_dir: str = "data/exports",
                          timestamp: datetime | None = None) -> str:
    """Write the analytics report to analytics-{agent}-{date}.json."""
    timestamp = timestamp or datetime.now(timezone.utc)
    output_path = str(Path(output_dir) / analytics_filename(agent_id, timestamp))
    _write_json(build_analytics_export(summary, agent_id, timestamp), output_path)
    logger.info(f"Analytics JSON exported: {output_path}")
    return output_path


def export_execution_json(execution, output_dir: str = "data/exports") -> str:
    """Write one execution to execution-{id}.json."""
    output_path = str(Path(output_dir) / execution_filename(execution))
    _write_json(_to_dict(execution), output_path)
    logger.info(f"Execution JSON exported: {output_path}")
    return output_path


def export_all_executions_json(executions: list, agent_id: str, output_dir: str = "data/exports") -> str:
    """Write every execution to all-executions-{agent}.json."""
    output_path = str(Path(output_dir) / all_executions_filename(agent_id))
    _write_json([_to_dict(e) for e in executions], output_path)
    logger.info(f"All executions exported: {output_path} ({len(executions)} executions)")
    return output_path


# ── CSV exports ──


def export_topic_tallies_csv(summary, output_path: str) -> str:
    """Export topic sentiment tallies (one row per topic)."""
    rows = _to_dict(summary).get("topic_tallies", [])
    df = pd.DataFrame(rows, columns=["name", "positive", "negative", "neutral", "total"])
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info(f"Topic tallies CSV: {output_path}")
    return output_path


def export_rating_histogram_csv(summary, output_path: str) -> str:
    """Export the NPS rating histogram (ratings 0-10)."""
    rows = _to_dict(summary).get("rating_histogram", [])
    df = pd.DataFrame(rows, columns=["rating", "count", "percent"])
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info(f"Rating histogram CSV: {output_path}")
    return output_path


def export_call_insights_csv(records: list, insights: list, output_path: str) -> str:
    """Export one row per completed call with its classifier results.

    Returns "" when there are no insights to write.
    """
    if not insights:
        return ""

    by_id = {}
    for record in records:
        record = record if isinstance(record, CallExecutionRecord) else CallExecutionRecord.from_api(record)
        by_id.setdefault(record.id, record)

    rows = []
    for insight in insights:
        data = _to_dict(insight)
        rows.append(_flatten_insight(data, by_id.get(data.get("record_id"))))
    df = pd.DataFrame(rows)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info(f"Call insights CSV: {output_path} ({len(rows)} calls)")
    return output_path


def export_all(summary, records: list, insights: list, agent_id: str,
               output_dir: str = "data/exports") -> dict:
    """Export all formats at once.

    Returns dict of {format: output_path} for all exported files.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    outputs = {
        "analytics_json": export_analytics_json(summary, agent_id, output_dir),
        "executions_json": export_all_executions_json(records, agent_id, output_dir),
        "topics_csv": export_topic_tallies_csv(summary, f"{output_dir}/topic_tallies.csv"),
        "ratings_csv": export_rating_histogram_csv(summary, f"{output_dir}/rating_histogram.csv"),
    }

    path = export_call_insights_csv(records, insights, f"{output_dir}/call_insights.csv")
    if path:
        outputs["insights_csv"] = path

    logger.info(f"All exports complete: {len(outputs)} files in {output_dir}/")
    return outputs


def _flatten_insight(insight: dict, record: CallExecutionRecord | None) -> dict:
    """Flatten a CallInsight (plus its record's metadata) to one row."""
    topics = insight.get("topics", {})
    row = {
        "execution_id": insight.get("record_id"),
        "phone_number": record.phone_number if record else None,
        "created_at": record.created_at.isoformat() if record and record.created_at else None,
        "duration": format_duration(record.duration_seconds) if record and record.duration_seconds is not None else None,
        "duration_bucket": insight.get("duration_bucket"),
        "rating": insight.get("rating"),
        "language": insight.get("language"),
    }
    for name in TOPIC_NAMES:
        row[f"topic_{name.lower().replace(' ', '_')}"] = topics.get(name)
    return row
