"""
Stateless mapping from one vendor stream payload to at most one common event.

Anthropic sends typed events (message_start, content_block_delta,
message_delta, message_stop, ping, error, ...). OpenAI-compatible vendors send
`choices[0].delta` fragments and finish with a literal `[DONE]` line.
"""

import json
import logging
from typing import Any, Dict, Optional

from seevable.chat.providers.models import (
    ContentDelta, ErrorEvent, MessageStart, MessageStop, StreamEvent, TokenUsage,
)

LOGGER = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("type") or "Unknown error")
    return str(error)


def normalize_anthropic_event(payload: Dict[str, Any]) -> Optional[StreamEvent]:
    event_type = payload.get("type")

    if event_type == "message_start":
        return MessageStart()

    if event_type == "content_block_delta":
        delta = payload.get("delta") or {}
        if delta.get("type") == "text_delta":
            return ContentDelta(text=delta.get("text", ""))
        return None

    if event_type == "message_delta":
        usage = payload.get("usage")
        if isinstance(usage, dict):
            return MessageStop(usage=TokenUsage(
                input_tokens=usage.get("input_tokens") or 0,
                output_tokens=usage.get("output_tokens") or 0,
            ))
        return MessageStop()

    if event_type == "message_stop":
        return MessageStop()

    if event_type == "error":
        return ErrorEvent(message=_error_message(payload.get("error")))

    # ping, content_block_start, content_block_stop
    return None


def normalize_openai_chunk(payload: Dict[str, Any]) -> Optional[StreamEvent]:
    error = payload.get("error")
    if error:
        return ErrorEvent(message=_error_message(error))

    choices = payload.get("choices") or []
    if not choices:
        return None
    choice = choices[0] or {}

    if choice.get("finish_reason") is not None:
        usage = payload.get("usage")
        if isinstance(usage, dict):
            return MessageStop(usage=TokenUsage(
                input_tokens=usage.get("prompt_tokens") or 0,
                output_tokens=usage.get("completion_tokens") or 0,
            ))
        return MessageStop()

    delta = choice.get("delta") or {}
    content = delta.get("content")
    if content:
        return ContentDelta(text=content)
    if delta.get("role"):
        return MessageStart()
    return None


def normalize_openai_line(data: str) -> Optional[StreamEvent]:
    """Handles the end sentinel, then decodes and normalizes one payload line."""
    if data == DONE_SENTINEL:
        return MessageStop()
    payload = decode_payload(data)
    if payload is None:
        return None
    return normalize_openai_chunk(payload)


def decode_payload(data: str) -> Optional[Dict[str, Any]]:
    """JSON-decodes a payload line; malformed or non-object payloads give None."""
    if not data:
        return None
    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        LOGGER.debug(f"Skipping non-JSON stream line: {data[:200]}")
        return None
    if not isinstance(payload, dict):
        return None
    return payload
