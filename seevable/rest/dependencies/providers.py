from seevable.chat.cache import chat_cache
from seevable.chat.config import Config
from seevable.chat.gateway import ChatGateway
from seevable.chat.models import ThreadSelection
from seevable.chat.providers import create_provider
from seevable.chat.threads import ConversationStore
from fastapi import Depends


def get_config() -> Config:
    """FastAPI dependency to get the process Config."""
    return Config.config()


def get_store(config: Config = Depends(get_config)) -> ConversationStore:
    """FastAPI dependency to get the ConversationStore."""
    return config.get_store()


def get_provider_factory():
    return create_provider


def get_gateway(store: ConversationStore = Depends(get_store),
                config: Config = Depends(get_config),
                provider_factory=Depends(get_provider_factory)) -> ChatGateway:
    return ChatGateway(store=store, config=config, provider_factory=provider_factory)


@chat_cache
def get_thread_selection() -> ThreadSelection:
    """The process-wide current-thread pointer; lives only as long as the process."""
    return ThreadSelection()
