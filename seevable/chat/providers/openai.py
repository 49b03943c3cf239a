import logging
from typing import Any, Dict, List

import httpx

from seevable.chat.providers import openai_compat
from seevable.chat.providers.models import ChatRequest, ChatResponse
from seevable.chat.providers.provider import ProviderName
from seevable.chat.providers.stream import EventStream
from seevable.chat.providers.transport import check_credentials, create_client, decode_json, send_request

LOGGER = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
VALIDATION_MODEL = "gpt-5-nano"

MODELS = [
    "gpt-5-mini",
    "gpt-5-nano",
]


class OpenAIProvider:

    name = ProviderName.OPENAI

    def __init__(self, api_key: str, timeout: httpx.Timeout = None,
                 transport: httpx.AsyncBaseTransport = None, url: str = OPENAI_API_URL):
        self.api_key = api_key
        self.url = url
        self.client = create_client(timeout=timeout, transport=transport)

    def build_payload(self, request: ChatRequest, stream: bool) -> Dict[str, Any]:
        # GPT-5 models only accept the default temperature, so it is never sent
        payload = {
            "model": request.model,
            "messages": openai_compat.convert_messages(request.messages, request.system),
            "stream": stream,
        }
        if request.max_tokens is not None:
            payload["max_completion_tokens"] = request.max_tokens
        return payload

    async def chat_stream(self, request: ChatRequest) -> EventStream:
        LOGGER.info(f"Streaming OpenAI completion with model {request.model} ({len(request.messages)} messages)")
        response = await send_request(self.client, self.url, openai_compat.bearer_headers(self.api_key),
                                      self.build_payload(request, stream=True), request.model, stream=True)
        return EventStream(response, openai_compat.new_stream_decoder(), provider=self.name.value)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        response = await send_request(self.client, self.url, openai_compat.bearer_headers(self.api_key),
                                      self.build_payload(request, stream=False), request.model, stream=False)
        return openai_compat.parse_chat_response(decode_json(response), request.model)

    async def validate_api_key(self, api_key: str) -> bool:
        payload = {
            "model": VALIDATION_MODEL,
            "messages": [{"role": "user", "content": "Hi"}],
            "max_completion_tokens": 5,
            "stream": False,
        }
        return await check_credentials(self.client, self.url, openai_compat.bearer_headers(api_key), payload)

    def available_models(self) -> List[str]:
        return list(MODELS)

    async def aclose(self) -> None:
        await self.client.aclose()
