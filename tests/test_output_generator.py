"""Tests for analytics JSON/CSV exports."""

import json
from datetime import datetime, timezone

import pandas as pd

from pipeline.orchestrator import analyze_completed, summarize_insights
from pipeline.output_generator import (
    analytics_filename,
    build_analytics_export,
    export_all,
    export_all_executions_json,
    export_analytics_json,
    export_call_insights_csv,
    export_execution_json,
    export_rating_histogram_csv,
    export_topic_tallies_csv,
)

EXECUTIONS = [
    {"execution_id": "e1", "status": "completed", "duration": 200, "recipient_phone_number": "+911",
     "transcript": "I would rate this 8 out of 10, the website was great"},
    {"execution_id": "e2", "status": "completed", "duration": 90, "transcript": "वेबसाइट खराब है, 3"},
    {"execution_id": "e3", "status": "failed", "transcript": "rating 10"},
]
STAMP = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _summary_and_insights():
    insights = analyze_completed(EXECUTIONS)
    return summarize_insights(insights), insights


class TestAnalyticsJson:
    def test_export_payload_shape(self):
        summary, _ = _summary_and_insights()
        data = build_analytics_export(summary, "agent-1", STAMP)
        assert data["agent_id"] == "agent-1"
        assert data["timestamp"] == "2025-03-01T12:00:00+00:00"
        assert data["summary"]["total_calls"] == 2
        assert data["feedback_data"] == data["summary"]["topic_tallies"]
        assert len(data["rating_data"]) == 11

    def test_filename_uses_date(self):
        assert analytics_filename("agent-1", STAMP) == "analytics-agent-1-2025-03-01.json"

    def test_write_file(self, tmp_path):
        summary, _ = _summary_and_insights()
        path = export_analytics_json(summary, "agent-1", str(tmp_path), timestamp=STAMP)
        assert path.endswith("analytics-agent-1-2025-03-01.json")
        with open(path, encoding="utf-8") as f:
            assert json.load(f)["summary"]["response_rate"] == 100


class TestExecutionJson:
    def test_single_execution(self, tmp_path):
        path = export_execution_json(EXECUTIONS[1], str(tmp_path))
        assert path.endswith("execution-e2.json")
        with open(path, encoding="utf-8") as f:
            assert "वेबसाइट" in f.read()

    def test_all_executions(self, tmp_path):
        path = export_all_executions_json(EXECUTIONS, "agent-1", str(tmp_path))
        assert path.endswith("all-executions-agent-1.json")
        with open(path, encoding="utf-8") as f:
            assert len(json.load(f)) == 3


class TestCsv:
    def test_topic_tallies(self, tmp_path):
        summary, _ = _summary_and_insights()
        path = export_topic_tallies_csv(summary, str(tmp_path / "topics.csv"))
        df = pd.read_csv(path)
        assert list(df.columns) == ["name", "positive", "negative", "neutral", "total"]
        assert len(df) == 6
        website = df[df["name"] == "Website"].iloc[0]
        assert website["positive"] == 1 and website["negative"] == 1

    def test_rating_histogram(self, tmp_path):
        summary, _ = _summary_and_insights()
        df = pd.read_csv(export_rating_histogram_csv(summary, str(tmp_path / "ratings.csv")))
        assert list(df["rating"]) == list(range(11))
        assert df["count"].sum() == 2

    def test_call_insights(self, tmp_path):
        summary, insights = _summary_and_insights()
        path = export_call_insights_csv(EXECUTIONS, insights, str(tmp_path / "calls.csv"))
        df = pd.read_csv(path)
        assert list(df["execution_id"]) == ["e1", "e2"]
        assert list(df["rating"]) == [8, 3]
        assert list(df["duration_bucket"]) == ["medium", "short"]
        assert list(df["duration"]) == ["03:20", "01:30"]
        assert list(df["topic_website"]) == ["positive", "negative"]

    def test_call_insights_empty(self, tmp_path):
        assert export_call_insights_csv([], [], str(tmp_path / "calls.csv")) == ""


def test_export_all(tmp_path):
    summary, insights = _summary_and_insights()
    outputs = export_all(summary, EXECUTIONS, insights, "agent-1", str(tmp_path))
    assert set(outputs) == {"analytics_json", "executions_json", "topics_csv", "ratings_csv", "insights_csv"}
