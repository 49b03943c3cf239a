from pydantic import BaseModel, Field
from typing import Optional, List


class ChatRequest(BaseModel):
    thread_id: Optional[str] = None  # None creates a new thread named after the prompt
    prompt: str
    provider: Optional[str] = None  # falls back to SEEVA_DEFAULT_PROVIDER
    api_key: Optional[str] = None  # falls back to the provider's env key
    model: Optional[str] = None  # falls back to the provider's first model
    images: Optional[List[str]] = None  # base64, media type is sniffed
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
