"""
ChatGateway - drives one conversational turn.

A turn persists the user message, sends the thread history to the selected
vendor, forwards every normalized event to the caller as it arrives and, only
when the stream completes cleanly, persists the assistant reply. A failure at
any point ends the turn with nothing further written.
"""

import asyncio
import enum
import inspect
import logging
import uuid
from typing import Any, Callable, List, Optional, Sequence

from seevable.chat.config import Config
from seevable.chat.errors import ApiError
from seevable.chat.models import Message, MessageRole
from seevable.chat.providers import ChatProvider, ProviderName, create_provider
from seevable.chat.providers.models import (
    ChatMessage, ChatRequest, ContentDelta, ErrorEvent, MessageStop, StreamEvent, TokenUsage,
)
from seevable.chat.threads import ConversationStore, ImageInput

LOGGER = logging.getLogger(__name__)

EventSink = Callable[[StreamEvent], Any]


class TurnState(str, enum.Enum):
    IDLE = "idle"
    USER_PERSISTED = "user_persisted"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class Turn:

    def __init__(self, thread_id: str, provider: ProviderName, model: str):
        self.id = uuid.uuid4().hex[:12]
        self.thread_id = thread_id
        self.provider = provider
        self.model = model
        self.state = TurnState.IDLE
        self.text_parts: List[str] = []
        self.usage: Optional[TokenUsage] = None
        self.error: Optional[BaseException] = None

    def transition(self, state: TurnState) -> None:
        LOGGER.info(f"Turn {self.id} thread={self.thread_id} provider={self.provider.value}: {self.state.value} -> {state.value}")
        self.state = state

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.transition(TurnState.FAILED)

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    def assistant_metadata(self) -> dict:
        metadata = {"model": self.model, "provider": self.provider.value}
        if self.usage is not None:
            metadata["tokens"] = self.usage.to_metadata()
        return metadata


def build_chat_request(history: Sequence[Message], model: str, system: Optional[str],
                       temperature: Optional[float], max_tokens: Optional[int]) -> ChatRequest:
    """System-role history entries never enter the transcript."""
    messages = [
        ChatMessage(role=message.role.value, content=message.content, images=message.images)
        for message in history
        if message.role != MessageRole.SYSTEM
    ]
    return ChatRequest(
        messages=messages,
        model=model,
        system=system,
        temperature=temperature,
        max_tokens=max_tokens,
        stream=True,
    )


async def _emit(sink: Optional[EventSink], event: StreamEvent) -> None:
    if sink is None:
        return
    result = sink(event)
    if inspect.isawaitable(result):
        await result


class ChatGateway:

    def __init__(self, store: ConversationStore, config: Config = None,
                 provider_factory: Callable[..., ChatProvider] = create_provider):
        self.store = store
        self.config = config or Config.config()
        self.provider_factory = provider_factory

    async def send(self, thread_id: str, content: str, *, provider, api_key: str, model: str,
                   images: Optional[Sequence[ImageInput]] = None, max_tokens: Optional[int] = None,
                   temperature: Optional[float] = None, sink: Optional[EventSink] = None) -> Message:
        """
        Runs one turn and returns the persisted assistant message. Any error
        (unknown provider, missing thread, vendor or transport failure, an
        error event in the stream, cancellation) propagates to the caller and
        leaves no assistant message behind.
        """
        provider_name = ProviderName.parse(provider)
        turn = Turn(thread_id, provider_name, model)
        LOGGER.info(f"Sending message to {provider_name.value} using model {model}: thread={thread_id} "
                    f"content_length={len(content)} images={len(images) if images else 0}")

        await asyncio.to_thread(self.store.add_message, thread_id, MessageRole.USER, content, images)
        turn.transition(TurnState.USER_PERSISTED)

        history = await asyncio.to_thread(self.store.get_messages, thread_id)
        request = build_chat_request(
            history,
            model=model,
            system=self.config.system_prompt,
            temperature=temperature if temperature is not None else self.config.temperature,
            max_tokens=max_tokens if max_tokens is not None else self.config.max_tokens,
        )

        adapter = self.provider_factory(provider_name, api_key, timeout=self.config.get_http_timeout())
        try:
            stream = await adapter.chat_stream(request)
            turn.transition(TurnState.STREAMING)
            async with stream:
                async for event in stream:
                    await _emit(sink, event)
                    if isinstance(event, ContentDelta):
                        turn.text_parts.append(event.text)
                    elif isinstance(event, MessageStop):
                        if event.usage is not None:
                            turn.usage = event.usage
                    elif isinstance(event, ErrorEvent):
                        raise ApiError(event.message)
        except asyncio.CancelledError as e:
            LOGGER.warning(f"Turn {turn.id} cancelled during {turn.state.value}; nothing persisted")
            turn.fail(e)
            raise
        except Exception as e:
            LOGGER.error(f"Turn {turn.id} failed: {e}", exc_info=True)
            turn.fail(e)
            raise
        finally:
            await adapter.aclose()

        LOGGER.info(f"Received complete response ({len(turn.text)} chars) for turn {turn.id}")
        if turn.usage is not None:
            LOGGER.info(f"Tokens used: {turn.usage.input_tokens} input, {turn.usage.output_tokens} output")

        assistant = await asyncio.to_thread(
            self.store.add_message, thread_id, MessageRole.ASSISTANT, turn.text, None, turn.assistant_metadata()
        )
        turn.transition(TurnState.COMPLETED)
        return assistant
