"""Bolna execution log client — fetches call executions for survey analytics.

Two endpoints are used:
1. GET /v2/agent/{agent_id}/executions — execution summaries for an agent
2. GET /executions/{execution_id}/log  — full detail (conversation, transcript, duration)

Detail is fetched concurrently and merged over each summary. Requests are
not retried: a failed detail fetch keeps the summary, a failed list fetch
raises ExecutionLogError.

Auth: Authorization: Bearer <BOLNA_API_KEY>
"""

import asyncio
import os

import httpx
from loguru import logger


API_BASE_URL = os.getenv("BOLNA_API_URL", "https://api.bolna.ai")
API_KEY = os.getenv("BOLNA_API_KEY", "")
AGENT_ID = os.getenv("BOLNA_AGENT_ID", "")
TIMEOUT_SECONDS = float(os.getenv("BOLNA_TIMEOUT", "30"))


class ExecutionLogError(Exception):
    """The execution list could not be retrieved."""


def _headers() -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {API_KEY}",
    }


def is_configured() -> bool:
    """Check if the Bolna API key is set (not placeholder)."""
    return bool(API_KEY) and API_KEY != "your_bolna_api_key"


def _unwrap_executions(data) -> list:
    """The list endpoint has returned a bare list, {'executions': [...]}, {'data': [...]}, or one object."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("executions"), list):
            return data["executions"]
        if isinstance(data.get("data"), list):
            return data["data"]
        return [data]
    return []


def _execution_id(execution: dict) -> str | None:
    return execution.get("execution_id") or execution.get("id")


async def fetch_execution_log(execution_id: str, client: httpx.AsyncClient | None = None) -> dict:
    """Fetch the full log for one execution. Raises httpx.HTTPError on failure."""
    if client is None:
        async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as own_client:
            return await fetch_execution_log(execution_id, own_client)

    resp = await client.get(f"{API_BASE_URL}/executions/{execution_id}/log", headers=_headers())
    resp.raise_for_status()
    return resp.json()


async def _with_detail(client: httpx.AsyncClient, execution) -> dict:
    if not isinstance(execution, dict):
        return execution
    execution_id = _execution_id(execution)
    if not execution_id:
        return execution

    try:
        detail = await fetch_execution_log(execution_id, client)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Bolna: detail fetch failed for {execution_id} (keeping summary): {e}")
        return execution

    if not isinstance(detail, dict):
        return execution
    return {**execution, **detail, "execution_id": execution_id}


async def fetch_executions(agent_id: str | None = None, client: httpx.AsyncClient | None = None) -> list[dict]:
    """Fetch all executions for an agent, each merged with its detailed log.

    Args:
        agent_id: Agent to query (defaults to BOLNA_AGENT_ID)
        client: Optional shared httpx client (tests pass one with a MockTransport)

    Returns:
        Raw execution dicts, in API order
    """
    agent_id = agent_id or AGENT_ID
    if client is None:
        async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as own_client:
            return await fetch_executions(agent_id, own_client)

    try:
        resp = await client.get(f"{API_BASE_URL}/v2/agent/{agent_id}/executions", headers=_headers())
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Bolna: could not list executions for agent {agent_id}: {e}")
        raise ExecutionLogError(f"Unable to fetch call logs for agent {agent_id}") from e

    executions = _unwrap_executions(data)
    logger.info(f"Bolna: {len(executions)} executions for agent {agent_id}, fetching detail")

    return list(await asyncio.gather(*(_with_detail(client, e) for e in executions)))
