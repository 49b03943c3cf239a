import logging
LOGGER = logging.getLogger(__name__)

from dotenv import load_dotenv
import os
import httpx
from typing import Optional
from seevable.chat.cache import chat_cache

load_dotenv()


DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

API_KEY_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


class Config:

    store = None

    def __init__(self):
        self.db_url = os.getenv('SEEVA_DB_URL', 'sqlite:////tmp/.seeva.db')
        self.default_provider = os.getenv('SEEVA_DEFAULT_PROVIDER', 'anthropic').strip().lower()
        self.system_prompt = os.getenv('SEEVA_SYSTEM_PROMPT', DEFAULT_SYSTEM_PROMPT)
        self.temperature = float(os.getenv('SEEVA_TEMPERATURE', 0.7))
        self.max_tokens = int(os.getenv('SEEVA_MAX_TOKENS', 4096))
        self.connect_timeout = float(os.getenv('SEEVA_HTTP_CONNECT_TIMEOUT', 10))
        self.read_timeout = float(os.getenv('SEEVA_HTTP_READ_TIMEOUT', 120))
        LOGGER.info(f"Created Config instance: db_url={self.db_url} default_provider={self.default_provider}")

    @classmethod
    @chat_cache
    def config(cls):
        return Config()

    def get_db_url(self) -> str:
        return self.db_url

    def get_http_timeout(self) -> httpx.Timeout:
        """
        Transport timeouts for vendor calls. The gateway adds none of its own,
        so a stalled stream fails with a read timeout from here.
        """
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=30.0,
            pool=10.0,
        )

    def get_api_key(self, provider_name: str) -> Optional[str]:
        env_var = API_KEY_ENV_VARS.get(provider_name.lower())
        if env_var is None:
            return None
        value = os.getenv(env_var)
        return value if value else None

    def get_cors_origins(self) -> list:
        origins_str = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost,http://localhost:3000,tauri://localhost")
        return [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    def get_store(self):
        """
        Have to lazy init the store here to avoid circular imports.
        """
        if self.store is None:
            from seevable.chat.threads import ConversationStore
            self.store = ConversationStore.from_url(self.get_db_url())
        return self.store
