import logging
from typing import Dict, List, Type

import httpx

from .provider import ChatProvider, ProviderName
from .anthropic import AnthropicProvider, MODELS as ANTHROPIC_MODELS
from .openai import OpenAIProvider, MODELS as OPENAI_MODELS
from .openrouter import OpenRouterProvider, MODELS as OPENROUTER_MODELS

LOGGER = logging.getLogger(__name__)

PROVIDERS: Dict[ProviderName, Type] = {
    ProviderName.ANTHROPIC: AnthropicProvider,
    ProviderName.OPENAI: OpenAIProvider,
    ProviderName.OPENROUTER: OpenRouterProvider,
}

PROVIDER_MODELS: Dict[ProviderName, List[str]] = {
    ProviderName.ANTHROPIC: ANTHROPIC_MODELS,
    ProviderName.OPENAI: OPENAI_MODELS,
    ProviderName.OPENROUTER: OPENROUTER_MODELS,
}


def create_provider(name, api_key: str, timeout: httpx.Timeout = None,
                    transport: httpx.AsyncBaseTransport = None) -> ChatProvider:
    """Builds the adapter for a vendor. Unknown names raise UnknownProviderError."""
    provider_name = ProviderName.parse(name)
    provider_class = PROVIDERS[provider_name]
    LOGGER.debug(f"Creating {provider_class.__name__}")
    return provider_class(api_key, timeout=timeout, transport=transport)


def available_models(name) -> List[str]:
    """Static model list for a vendor without building an adapter."""
    return list(PROVIDER_MODELS[ProviderName.parse(name)])


__all__ = [
    "ChatProvider", "ProviderName", "PROVIDERS", "PROVIDER_MODELS",
    "AnthropicProvider", "OpenAIProvider", "OpenRouterProvider",
    "create_provider", "available_models",
]
