import enum
from typing import List, Protocol, runtime_checkable

from seevable.chat.errors import UnknownProviderError
from seevable.chat.providers.models import ChatRequest, ChatResponse
from seevable.chat.providers.stream import EventStream


class ProviderName(str, enum.Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"

    @classmethod
    def parse(cls, value) -> "ProviderName":
        if isinstance(value, ProviderName):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownProviderError(str(value)) from None


@runtime_checkable
class ChatProvider(Protocol):
    """Capabilities every vendor adapter offers."""

    name: ProviderName

    async def chat_stream(self, request: ChatRequest) -> EventStream:
        """
        Opens a streaming completion. Raises the classified error on a
        non-success status without opening a stream.
        """
        ...

    async def chat(self, request: ChatRequest) -> ChatResponse:
        ...

    async def validate_api_key(self, api_key: str) -> bool:
        ...

    def available_models(self) -> List[str]:
        ...

    async def aclose(self) -> None:
        ...
