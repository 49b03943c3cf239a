from pydantic import BaseModel
from typing import List


class ProviderRef(BaseModel):
    name: str
    models: List[str]
    default_model: str


class ValidateKeyRequest(BaseModel):
    api_key: str


class ValidateKeyResponse(BaseModel):
    provider: str
    valid: bool
