"""
Error taxonomy for the chat gateway.

Adapter errors derive from ChatError. Store errors stand on their own since
they never involve a vendor.
"""


class ChatError(Exception):
    """Base class for every provider or gateway failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidApiKeyError(ChatError):

    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message)


class RateLimitExceededError(ChatError):

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message)


class ModelNotFoundError(ChatError):

    def __init__(self, model: str):
        super().__init__(f"Model not found: {model}")
        self.model = model


class ApiError(ChatError):

    def __init__(self, message: str):
        super().__init__(f"API error: {message}")
        self.detail = message


class RequestError(ChatError):
    """Transport-level failure: connect, read, timeout, protocol."""

    def __init__(self, message: str):
        super().__init__(f"HTTP request failed: {message}")


class JsonError(ChatError):

    def __init__(self, message: str):
        super().__init__(f"JSON parsing error: {message}")


class UnknownProviderError(ChatError, ValueError):

    def __init__(self, name: str):
        super().__init__(f"Unsupported provider: {name}")
        self.name = name


class ThreadNotFoundError(LookupError):

    def __init__(self, thread_id: str):
        super().__init__(f"Thread {thread_id} not found")
        self.thread_id = thread_id
