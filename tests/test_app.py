"""Tests for the analytics API endpoints (execution log client mocked)."""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

import app as app_module
from pipeline.orchestrator import compute_survey_analytics
from services.bolna.client import ExecutionLogError

EXECUTIONS = [
    {"execution_id": "e1", "status": "completed", "duration": 320,
     "recipient_phone_number": "+919876543210", "created_at": "2025-03-01T10:00:00Z",
     "conversation": {"data": [
         {"component": "llm", "type": "response", "data": "How would you rate us?", "created_at": "t1"},
         {"component": "transcriber", "type": "response", "data": "I would rate this 8 out of 10", "created_at": "t2"},
     ]}},
    {"execution_id": "e2", "status": "failed", "duration": 10},
]


@pytest.fixture
def client():
    with patch("app.bolna_configured", return_value=True):
        yield TestClient(app_module.app)


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["bolna_configured"] is True


def test_not_configured_returns_503():
    with patch("app.bolna_configured", return_value=False):
        resp = TestClient(app_module.app).get("/api/analytics", params={"agent_id": "a1"})
    assert resp.status_code == 503


def test_analytics(client):
    with patch("app.fetch_executions", new_callable=AsyncMock, return_value=EXECUTIONS):
        resp = client.get("/api/analytics", params={"agent_id": "a1"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_calls"] == 1
    assert data["average_rating"] == 8.0
    assert data["response_rate"] == 100
    assert data["duration_buckets"] == {"short": 0, "medium": 0, "long": 1}


def test_analytics_upstream_failure(client):
    with patch("app.fetch_executions", new_callable=AsyncMock, side_effect=ExecutionLogError("down")):
        resp = client.get("/api/analytics", params={"agent_id": "a1"})
    assert resp.status_code == 502


def test_analytics_export_is_attachment(client):
    with patch("app.fetch_executions", new_callable=AsyncMock, return_value=EXECUTIONS):
        resp = client.get("/api/analytics/export", params={"agent_id": "a1"})
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    assert "analytics-a1-" in resp.headers["content-disposition"]
    body = resp.json()
    assert body["agent_id"] == "a1"
    assert body["summary"]["total_calls"] == 1


def test_list_executions(client):
    with patch("app.fetch_executions", new_callable=AsyncMock, return_value=EXECUTIONS):
        resp = client.get("/api/executions", params={"agent_id": "a1"})
    data = resp.json()
    assert data["total"] == 2
    assert data["executions"][0]["duration"] == "05:20"
    assert data["executions"][1]["status"] == "failed"


def test_download_all_executions(client):
    with patch("app.fetch_executions", new_callable=AsyncMock, return_value=EXECUTIONS):
        resp = client.get("/api/executions/download", params={"agent_id": "a1"})
    assert 'filename="all-executions-a1.json"' in resp.headers["content-disposition"]
    assert len(resp.json()) == 2


def test_execution_detail(client):
    with patch("app.fetch_execution_log", new_callable=AsyncMock, return_value=EXECUTIONS[0]):
        resp = client.get("/api/executions/e1")
    data = resp.json()
    assert [m["role"] for m in data["messages"]] == ["assistant", "user"]
    assert data["insight"]["rating"] == 8
    assert data["message_languages"] == {"english": 2}


def test_execution_not_found(client):
    error = httpx.HTTPStatusError(
        "not found",
        request=httpx.Request("GET", "https://bolna.test/executions/x/log"),
        response=httpx.Response(404),
    )
    with patch("app.fetch_execution_log", new_callable=AsyncMock, side_effect=error):
        resp = client.get("/api/executions/x")
    assert resp.status_code == 404


def test_download_execution(client):
    with patch("app.fetch_execution_log", new_callable=AsyncMock, return_value={"status": "completed"}):
        resp = client.get("/api/executions/e7/download")
    assert 'filename="execution-e7.json"' in resp.headers["content-disposition"]
    assert resp.json()["execution_id"] == "e7"


def test_analytics_computed_off_event_loop(client):
    loops = []

    def _compute(executions):
        try:
            loops.append(asyncio.get_running_loop())
        except RuntimeError:
            loops.append(None)
        return compute_survey_analytics(executions)

    with patch("app.fetch_executions", new_callable=AsyncMock, return_value=EXECUTIONS), \
         patch("app.compute_survey_analytics", side_effect=_compute):
        resp = client.get("/api/analytics", params={"agent_id": "a1"})
    assert resp.status_code == 200
    assert resp.json()["total_calls"] == 1
    assert loops == [None]
