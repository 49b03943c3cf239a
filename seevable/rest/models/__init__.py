# Export all models for easy importing
from .threads import CreateThreadRequest, UpdateThreadRequest, SwitchThreadRequest, CurrentThreadRef
from .chat import ChatRequest
from .providers import ProviderRef, ValidateKeyRequest, ValidateKeyResponse

__all__ = [
    # Thread models
    "CreateThreadRequest", "UpdateThreadRequest", "SwitchThreadRequest", "CurrentThreadRef",

    # Chat models
    "ChatRequest",

    # Provider models
    "ProviderRef", "ValidateKeyRequest", "ValidateKeyResponse",
]
