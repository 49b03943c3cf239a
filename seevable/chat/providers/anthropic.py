"""
Anthropic Messages API adapter.

The stream is made of typed events; only text deltas and the terminal events
carry information. Input tokens arrive in message_start while message_delta
usually reports output tokens only, so the line normalizer remembers the
former for the stop event of the same stream.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from seevable.chat.providers.models import ChatMessage, ChatRequest, ChatResponse, MessageStop, StreamEvent, TokenUsage
from seevable.chat.providers.normalizer import decode_payload, normalize_anthropic_event
from seevable.chat.providers.provider import ProviderName
from seevable.chat.providers.stream import EventStream, StreamDecoder
from seevable.chat.providers.transport import check_credentials, create_client, decode_json, send_request

LOGGER = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096
VALIDATION_MODEL = "claude-haiku-4-5-20251001"

MODELS = [
    "claude-sonnet-4-5-20250929",
    "claude-haiku-4-5-20251001",
    "claude-opus-4-1-20250805",
    "claude-sonnet-4-20250514",
    "claude-3-7-sonnet-20250219",
]


class AnthropicLineNormalizer:

    def __init__(self):
        self.input_tokens = None

    def __call__(self, data: str) -> Optional[StreamEvent]:
        payload = decode_payload(data)
        if payload is None:
            return None
        if payload.get("type") == "message_start":
            usage = (payload.get("message") or {}).get("usage") or {}
            self.input_tokens = usage.get("input_tokens")
        event = normalize_anthropic_event(payload)
        if isinstance(event, MessageStop) and event.usage is not None:
            if not event.usage.input_tokens and self.input_tokens:
                event.usage.input_tokens = self.input_tokens
        return event


def new_stream_decoder() -> StreamDecoder:
    return StreamDecoder(AnthropicLineNormalizer())


def convert_messages(messages: List[ChatMessage]) -> List[Dict[str, Any]]:
    converted = []
    for message in messages:
        if message.images:
            blocks = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": image.media_type, "data": image.data},
                }
                for image in message.images
            ]
            # text goes after the images
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            content = blocks
        else:
            content = message.content
        converted.append({"role": message.role, "content": content})
    return converted


class AnthropicProvider:

    name = ProviderName.ANTHROPIC

    def __init__(self, api_key: str, timeout: httpx.Timeout = None,
                 transport: httpx.AsyncBaseTransport = None, url: str = ANTHROPIC_API_URL):
        self.api_key = api_key
        self.url = url
        self.client = create_client(timeout=timeout, transport=transport)

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
        }

    def build_payload(self, request: ChatRequest, stream: bool) -> Dict[str, Any]:
        payload = {
            "model": request.model,
            "messages": convert_messages(request.messages),
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "stream": stream,
        }
        if request.system:
            payload["system"] = request.system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        return payload

    async def chat_stream(self, request: ChatRequest) -> EventStream:
        LOGGER.info(f"Streaming Anthropic completion with model {request.model} ({len(request.messages)} messages)")
        response = await send_request(self.client, self.url, self._headers(self.api_key),
                                      self.build_payload(request, stream=True), request.model, stream=True)
        return EventStream(response, new_stream_decoder(), provider=self.name.value)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        response = await send_request(self.client, self.url, self._headers(self.api_key),
                                      self.build_payload(request, stream=False), request.model, stream=False)
        data = decode_json(response)
        text = "\n".join(
            block.get("text", "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        return ChatResponse(
            content=text,
            model=data.get("model", request.model),
            usage=TokenUsage(
                input_tokens=usage.get("input_tokens") or 0,
                output_tokens=usage.get("output_tokens") or 0,
            ),
        )

    async def validate_api_key(self, api_key: str) -> bool:
        payload = {
            "model": VALIDATION_MODEL,
            "messages": [{"role": "user", "content": "Hi"}],
            "max_tokens": 10,
            "stream": False,
        }
        return await check_credentials(self.client, self.url, self._headers(api_key), payload)

    def available_models(self) -> List[str]:
        return list(MODELS)

    async def aclose(self) -> None:
        await self.client.aclose()
