import logging
from typing import Any, Dict, List

import httpx

from seevable.chat.providers import openai_compat
from seevable.chat.providers.models import ChatRequest, ChatResponse
from seevable.chat.providers.provider import ProviderName
from seevable.chat.providers.stream import EventStream
from seevable.chat.providers.transport import check_credentials, create_client, decode_json, send_request

LOGGER = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
OPENROUTER_REFERER = "https://seeva.ai"
OPENROUTER_TITLE = "Seeva AI Assistant"
VALIDATION_MODEL = "anthropic/claude-3.5-haiku"

MODELS = [
    # Anthropic
    "anthropic/claude-sonnet-4",
    "anthropic/claude-3.7-sonnet",
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3.5-haiku",
    "anthropic/claude-opus-4",
    # OpenAI
    "openai/gpt-5.1",
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "openai/gpt-4-turbo",
    "openai/chatgpt-4o-latest",
    # Google
    "google/gemini-2.5-flash-lite-preview-09-2025",
    "google/gemini-2.0-flash-exp",
    "google/gemini-2.0-flash-thinking-exp:free",
    "google/gemini-pro-1.5",
    "google/gemini-flash-1.5",
    # Meta
    "meta-llama/llama-3.3-70b-instruct",
    "meta-llama/llama-3.2-90b-vision-instruct",
    "meta-llama/llama-3.1-405b-instruct",
    # DeepSeek
    "deepseek/deepseek-r1",
    "deepseek/deepseek-chat",
    # Mistral
    "mistralai/mistral-large",
    "mistralai/mistral-small",
    # Qwen
    "qwen/qwen3-vl-235b-a22b-thinking",
    "qwen/qwen-2.5-72b-instruct",
    # NVIDIA
    "nvidia/nemotron-nano-12b-v2-vl:free",
    # Others
    "x-ai/grok-2-vision-1212",
    "perplexity/llama-3.1-sonar-huge-128k-online",
]


class OpenRouterProvider:

    name = ProviderName.OPENROUTER

    def __init__(self, api_key: str, timeout: httpx.Timeout = None,
                 transport: httpx.AsyncBaseTransport = None, url: str = OPENROUTER_API_URL):
        self.api_key = api_key
        self.url = url
        self.client = create_client(timeout=timeout, transport=transport)

    def _headers(self, api_key: str) -> Dict[str, str]:
        headers = openai_compat.bearer_headers(api_key)
        headers["HTTP-Referer"] = OPENROUTER_REFERER
        headers["X-Title"] = OPENROUTER_TITLE
        return headers

    def build_payload(self, request: ChatRequest, stream: bool) -> Dict[str, Any]:
        payload = {
            "model": request.model,
            "messages": openai_compat.convert_messages(request.messages, request.system),
            "stream": stream,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        return payload

    async def chat_stream(self, request: ChatRequest) -> EventStream:
        LOGGER.info(f"Streaming OpenRouter completion with model {request.model} ({len(request.messages)} messages)")
        response = await send_request(self.client, self.url, self._headers(self.api_key),
                                      self.build_payload(request, stream=True), request.model, stream=True)
        return EventStream(response, openai_compat.new_stream_decoder(), provider=self.name.value)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        response = await send_request(self.client, self.url, self._headers(self.api_key),
                                      self.build_payload(request, stream=False), request.model, stream=False)
        return openai_compat.parse_chat_response(decode_json(response), request.model)

    async def validate_api_key(self, api_key: str) -> bool:
        payload = {
            "model": VALIDATION_MODEL,
            "messages": [{"role": "user", "content": "Hi"}],
            "max_tokens": 5,
            "stream": False,
        }
        return await check_credentials(self.client, self.url, self._headers(api_key), payload)

    def available_models(self) -> List[str]:
        return list(MODELS)

    async def aclose(self) -> None:
        await self.client.aclose()
