import logging
LOGGER = logging.getLogger(__name__)

import json
from typing import Iterable, List

import httpx

from seevable.chat.providers import create_provider


ANTHROPIC_HELLO_STREAM = (
    b'event: message_start\n'
    b'data: {"type":"message_start","message":{"id":"msg_01","model":"claude-sonnet-4-5-20250929",'
    b'"usage":{"input_tokens":3,"output_tokens":1}}}\n'
    b'\n'
    b'event: content_block_start\n'
    b'data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}\n'
    b'\n'
    b'event: ping\n'
    b'data: {"type":"ping"}\n'
    b'\n'
    b'event: content_block_delta\n'
    b'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hel"}}\n'
    b'\n'
    b'event: content_block_delta\n'
    b'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"lo"}}\n'
    b'\n'
    b'event: content_block_stop\n'
    b'data: {"type":"content_block_stop","index":0}\n'
    b'\n'
    b'event: message_delta\n'
    b'data: {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":2}}\n'
    b'\n'
    b'event: message_stop\n'
    b'data: {"type":"message_stop"}\n'
    b'\n'
)

OPENAI_HELLO_STREAM = (
    b'data: {"id":"c1","choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}\n'
    b'\n'
    b'data: {"id":"c1","choices":[{"index":0,"delta":{"content":"Hel"},"finish_reason":null}]}\n'
    b'\n'
    b'data: {"id":"c1","choices":[{"index":0,"delta":{"content":"lo"},"finish_reason":null}]}\n'
    b'\n'
    b'data: {"id":"c1","choices":[{"index":0,"delta":{},"finish_reason":"stop"}],'
    b'"usage":{"prompt_tokens":3,"completion_tokens":2}}\n'
    b'\n'
    b'data: [DONE]\n'
    b'\n'
)

ANTHROPIC_OVERLOADED_STREAM = (
    b'event: message_start\n'
    b'data: {"type":"message_start","message":{"usage":{"input_tokens":3}}}\n'
    b'\n'
    b'event: content_block_delta\n'
    b'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Par"}}\n'
    b'\n'
    b'event: error\n'
    b'data: {"type":"error","error":{"type":"overloaded_error","message":"Overloaded"}}\n'
    b'\n'
)

# 1x1 transparent PNG
PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


def chunked(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


def streaming_body(chunks: Iterable[bytes]):
    """Async body for httpx.Response that yields the given chunks one by one."""
    async def body():
        for chunk in chunks:
            yield chunk
    return body()


class RecordingTransport:
    """
    MockTransport handler that records every request and answers with a
    fresh response built by `respond(request)`.
    """

    def __init__(self, respond):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def stream_responder(data: bytes, chunk_size: int = 7, status_code: int = 200):
    def respond(request):
        return httpx.Response(status_code, content=streaming_body(chunked(data, chunk_size)),
                              headers={"content-type": "text/event-stream"})
    return respond


def json_responder(body, status_code: int = 200):
    def respond(request):
        return httpx.Response(status_code, json=body)
    return respond


def provider_factory_for(recorder: RecordingTransport):
    """Stands in for create_provider, routing the adapter through the recorder."""
    def factory(name, api_key, timeout=None):
        return create_provider(name, api_key, timeout=timeout, transport=recorder.transport())
    return factory


class RecordingSink:

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def types(self) -> List[str]:
        return [event.type for event in self.events]
