from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter
from typing_extensions import Annotated

from seevable.chat.models import ImageData


class ChatMessage(BaseModel):
    role: str
    content: str
    images: Optional[List[ImageData]] = None


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    model: str
    system: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = True


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    def to_metadata(self) -> dict:
        return {"input": self.input_tokens, "output": self.output_tokens}


class ChatResponse(BaseModel):
    content: str
    model: str
    usage: Optional[TokenUsage] = None


class ContentDelta(BaseModel):
    type: Literal["content_delta"] = "content_delta"
    text: str


class MessageStart(BaseModel):
    type: Literal["message_start"] = "message_start"


class MessageStop(BaseModel):
    type: Literal["message_stop"] = "message_stop"
    usage: Optional[TokenUsage] = None


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[ContentDelta, MessageStart, MessageStop, ErrorEvent],
    Field(discriminator="type"),
]

stream_event_adapter = TypeAdapter(StreamEvent)
