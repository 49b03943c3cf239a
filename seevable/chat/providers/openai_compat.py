"""
Pieces shared by the OpenAI-style chat-completions vendors (OpenAI and
OpenRouter): message conversion, the stream decoder and response parsing.
"""

from typing import Any, Dict, List, Optional

from seevable.chat.errors import ApiError
from seevable.chat.providers.models import ChatMessage, ChatResponse, TokenUsage
from seevable.chat.providers.normalizer import normalize_openai_line
from seevable.chat.providers.stream import StreamDecoder


def new_stream_decoder() -> StreamDecoder:
    return StreamDecoder(normalize_openai_line)


def convert_messages(messages: List[ChatMessage], system: Optional[str] = None) -> List[Dict[str, Any]]:
    converted = []
    if system:
        converted.append({"role": "system", "content": system})
    for message in messages:
        if message.images:
            parts = []
            if message.content:
                parts.append({"type": "text", "text": message.content})
            for image in message.images:
                parts.append({"type": "image_url", "image_url": {"url": image.data_uri()}})
            content = parts
        else:
            content = message.content
        converted.append({"role": message.role, "content": content})
    return converted


def bearer_headers(api_key: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "content-type": "application/json",
    }


def parse_chat_response(data: Dict[str, Any], model: str) -> ChatResponse:
    choices = data.get("choices") or []
    if not choices:
        raise ApiError("No choices in response")
    message = choices[0].get("message") or {}
    content = message.get("content") or ""
    if isinstance(content, list):
        content = "\n".join(part.get("text", "") for part in content
                            if isinstance(part, dict) and part.get("type") == "text")
    usage = data.get("usage")
    return ChatResponse(
        content=content,
        model=data.get("model", model),
        usage=TokenUsage(
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
        ) if isinstance(usage, dict) else None,
    )
