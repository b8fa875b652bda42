"""Transcript normalization — flatten any conversation payload into plain text.

The execution log API returns the conversation in several shapes:
  - an event log: {"data": [{"component": "transcriber", "type": "response", "data": "..."}, ...]}
    (or the bare list of events)
  - a plain transcript string
  - arbitrary JSON from older agents

The payload shape is resolved once here, so the rating, topic, and language
classifiers only ever see a string.
"""

import json
from enum import Enum
from typing import Any

# (component, type) pairs that carry spoken text
_USER_SPEECH = ("transcriber", "response")
_AGENT_SPEECH = ("llm", "response")


class PayloadKind(str, Enum):
    EVENT_LIST = "event_list"
    PLAIN_TEXT = "plain_text"
    UNSTRUCTURED = "unstructured"
    EMPTY = "empty"


def _is_event(item: Any) -> bool:
    return isinstance(item, dict) and "component" in item


def classify_payload(conversation: Any) -> tuple[PayloadKind, Any]:
    """Resolve a conversation payload into (kind, value).

    For EVENT_LIST the value is the list of event dicts.
    """
    if conversation is None or (isinstance(conversation, str) and not conversation.strip()):
        return PayloadKind.EMPTY, None
    if isinstance(conversation, str):
        return PayloadKind.PLAIN_TEXT, conversation
    if isinstance(conversation, dict) and isinstance(conversation.get("data"), list):
        return PayloadKind.EVENT_LIST, conversation["data"]
    if isinstance(conversation, list) and conversation and all(_is_event(i) for i in conversation):
        return PayloadKind.EVENT_LIST, conversation
    return PayloadKind.UNSTRUCTURED, conversation


def _event_text(event: Any) -> str:
    """Spoken text of a user/agent response event, '' for anything else."""
    if not isinstance(event, dict):
        return ""
    key = (event.get("component"), event.get("type"))
    if key != _USER_SPEECH and key != _AGENT_SPEECH:
        return ""
    text = event.get("data")
    if isinstance(text, str):
        return text.strip()
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return str(text)
    return ""


def _serialize(payload: Any) -> str:
    try:
        return json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def normalize_transcript(conversation: Any, transcript: str | None = None) -> str:
    """Flatten a conversation payload into one text blob.

    Args:
        conversation: Event list, plain string, or arbitrary JSON (may be None)
        transcript: Plain transcript, used when the payload yields no text

    Returns:
        Normalized text; '' when there is nothing to read
    """
    kind, value = classify_payload(conversation)

    if kind == PayloadKind.PLAIN_TEXT:
        return value

    if kind == PayloadKind.EVENT_LIST:
        texts = [t for t in (_event_text(e) for e in value) if t]
        if texts:
            return " ".join(texts)

    if isinstance(transcript, str) and transcript:
        return transcript

    if kind == PayloadKind.UNSTRUCTURED:
        return _serialize(value)
    return ""


def build_readable_conversation(conversation: Any) -> list[dict]:
    """Turn an event log into chat messages for display.

    Events sharing a created_at timestamp form one exchange: the user's
    utterance first, then the agent's reply.

    Returns:
        List of {"role": "user"|"assistant", "content": str, "timestamp": str}
    """
    kind, value = classify_payload(conversation)

    if kind != PayloadKind.EVENT_LIST:
        if isinstance(conversation, list):
            return list(conversation)
        return []

    # dicts keep insertion order, so exchanges stay in first-seen order
    groups: dict[Any, list[dict]] = {}
    for event in value:
        if isinstance(event, dict):
            groups.setdefault(event.get("created_at"), []).append(event)

    messages = []
    for timestamp, events in groups.items():
        user = next((e for e in events if (e.get("component"), e.get("type")) == _USER_SPEECH), None)
        agent = next((e for e in events if (e.get("component"), e.get("type")) == _AGENT_SPEECH), None)
        if user is not None:
            messages.append({"role": "user", "content": user.get("data"), "timestamp": timestamp})
        if agent is not None:
            messages.append({"role": "assistant", "content": agent.get("data"), "timestamp": timestamp})

    return messages


def format_duration(seconds: Any) -> str:
    """Format a duration as mm:ss. Accepts numbers or numeric strings."""
    try:
        total = int(float(seconds or 0))
    except (TypeError, ValueError):
        total = 0
    total = max(total, 0)
    return f"{total // 60:02d}:{total % 60:02d}"
