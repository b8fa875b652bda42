"""SurveyPulse — feedback-call analytics API."""

import asyncio
import json

from dotenv import load_dotenv
load_dotenv()

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger

from analysis.language_tagging import language_distribution
from analysis.transcript import build_readable_conversation, format_duration
from config.schemas import CallExecutionRecord
from pipeline.orchestrator import analyze_execution, compute_survey_analytics
from pipeline.output_generator import (
    all_executions_filename,
    analytics_filename,
    build_analytics_export,
    execution_filename,
)
from services.bolna.client import (
    AGENT_ID,
    API_BASE_URL,
    ExecutionLogError,
    fetch_execution_log,
    fetch_executions,
    is_configured as bolna_configured,
)

app = FastAPI(
    title="SurveyPulse",
    description="Feedback call analytics — NPS ratings, topic sentiment, language mix, call duration",
    version="0.1.0",
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_configured():
    if not bolna_configured():
        raise HTTPException(status_code=503, detail="BOLNA_API_KEY is not configured")


async def _load_executions(agent_id: str) -> list[dict]:
    _require_configured()
    try:
        return await fetch_executions(agent_id)
    except ExecutionLogError as e:
        raise HTTPException(
            status_code=502, detail="Unable to fetch call logs. Please check your connection."
        ) from e


def _attachment(data, filename: str) -> Response:
    """JSON body served as a file download."""
    body = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/health")
async def health():
    """Health check — execution log API configuration."""
    return {
        "status": "healthy",
        "bolna_configured": bolna_configured(),
        "agent_id": AGENT_ID or None,
        "api_url": API_BASE_URL,
    }


@app.get("/api/executions")
async def list_executions(agent_id: str = Query(AGENT_ID)):
    """List call executions with summary metadata."""
    executions = await _load_executions(agent_id)

    calls = []
    for raw in executions:
        record = CallExecutionRecord.from_api(raw)
        calls.append({
            "execution_id": record.id,
            "phone_number": record.phone_number,
            "status": record.status.value,
            "created_at": record.created_at.isoformat() if record.created_at else None,
            "duration": format_duration(record.duration_seconds),
            "duration_seconds": record.duration_seconds,
            "recording_url": record.recording_url,
        })

    return {"agent_id": agent_id, "executions": calls, "total": len(calls)}


@app.get("/api/executions/download")
async def download_all_executions(agent_id: str = Query(AGENT_ID)):
    """Download every execution (with detail) as one JSON file."""
    executions = await _load_executions(agent_id)
    return _attachment(executions, all_executions_filename(agent_id))


async def _load_execution(execution_id: str) -> dict:
    _require_configured()
    try:
        data = await fetch_execution_log(execution_id)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Execution {execution_id} not found") from e
        raise HTTPException(status_code=502, detail="Unable to fetch call details.") from e
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Execution detail fetch failed for {execution_id}: {e}")
        raise HTTPException(status_code=502, detail="Unable to fetch call details.") from e

    if not isinstance(data, dict):
        raise HTTPException(status_code=502, detail="Unexpected execution log format")
    return data


@app.get("/api/executions/{execution_id}")
async def get_execution(execution_id: str):
    """Get one execution: readable conversation, transcript, and its classifier results."""
    data = await _load_execution(execution_id)
    record = CallExecutionRecord.from_api({**data, "execution_id": execution_id})
    messages = build_readable_conversation(record.conversation)
    # CPU-bound classifiers run off the event loop
    insight = await asyncio.to_thread(analyze_execution, record)

    return {
        "execution_id": execution_id,
        "status": record.status.value,
        "phone_number": record.phone_number,
        "created_at": record.created_at.isoformat() if record.created_at else None,
        "duration": format_duration(record.duration_seconds),
        "recording_url": record.recording_url,
        "messages": messages,
        "message_languages": language_distribution(messages),
        "transcript": record.transcript,
        "insight": insight.model_dump(mode="json"),
    }


@app.get("/api/executions/{execution_id}/download")
async def download_execution(execution_id: str):
    """Download the raw execution log for one call."""
    data = await _load_execution(execution_id)
    data = {**data, "execution_id": execution_id}
    return _attachment(data, execution_filename(data))


@app.get("/api/analytics")
async def get_analytics(agent_id: str = Query(AGENT_ID)):
    """Survey analytics over all completed calls, recomputed from fresh execution logs."""
    executions = await _load_executions(agent_id)
    summary = await asyncio.to_thread(compute_survey_analytics, executions)
    return JSONResponse(content=summary.model_dump(mode="json"))


@app.get("/api/analytics/export")
async def export_analytics(agent_id: str = Query(AGENT_ID)):
    """Download the analytics report (summary, topic tallies, rating histogram)."""
    executions = await _load_executions(agent_id)
    summary = await asyncio.to_thread(compute_survey_analytics, executions)
    logger.info(f"Analytics exported for agent {agent_id} ({summary.total_calls} completed calls)")
    return _attachment(build_analytics_export(summary, agent_id), analytics_filename(agent_id))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
