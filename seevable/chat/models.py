import base64
import binascii
import enum
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from magika import Magika

from seevable.chat.cache import chat_cache

LOGGER = logging.getLogger(__name__)

DEFAULT_IMAGE_MEDIA_TYPE = "image/jpeg"


@chat_cache
def _magika() -> Magika:
    return Magika()


def sniff_media_type(data: str) -> str:
    """
    Detect the media type of a base64 image payload with Magika. Anything
    Magika does not recognise as an image is labelled image/jpeg.
    """
    try:
        content = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError):
        return DEFAULT_IMAGE_MEDIA_TYPE
    if not content:
        return DEFAULT_IMAGE_MEDIA_TYPE
    result = _magika().identify_bytes(content)
    mime_type = result.output.mime_type
    if mime_type and mime_type.startswith("image/"):
        return mime_type
    LOGGER.debug(f"Magika identified image payload as {mime_type}, using {DEFAULT_IMAGE_MEDIA_TYPE}")
    return DEFAULT_IMAGE_MEDIA_TYPE


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageData(ChatModel):
    data: str  # base64
    media_type: str = DEFAULT_IMAGE_MEDIA_TYPE

    @classmethod
    def from_base64(cls, data: str) -> "ImageData":
        return cls(data=data, media_type=sniff_media_type(data))

    @classmethod
    def coerce(cls, image: Union[str, "ImageData", Dict[str, Any]]) -> "ImageData":
        if isinstance(image, ImageData):
            return image
        if isinstance(image, str):
            return cls.from_base64(image)
        if isinstance(image, dict):
            return cls.model_validate(image)
        raise TypeError(f"Unsupported image value: {type(image).__name__}")

    def data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


class Thread(ChatModel):
    id: str
    name: str
    created_at: int
    updated_at: int
    message_count: int = 0
    last_message: Optional[str] = None


class Message(ChatModel):
    id: str
    thread_id: str
    role: MessageRole
    content: str
    images: Optional[List[ImageData]] = None
    created_at: int
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ThreadSelection:
    """
    Explicit "current thread" pointer. Owned by the caller and handed to the
    store operations that move it; never persisted.
    """

    def __init__(self, thread_id: Optional[str] = None):
        self.thread_id = thread_id

    def select(self, thread_id: str) -> None:
        self.thread_id = thread_id

    def clear(self, thread_id: Optional[str] = None) -> None:
        if thread_id is None or self.thread_id == thread_id:
            self.thread_id = None

    def __repr__(self):
        return f"ThreadSelection(thread_id={self.thread_id!r})"
