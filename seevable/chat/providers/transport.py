import json
import logging
from typing import Any, Dict

import httpx

from seevable.chat.errors import (
    ApiError, ChatError, InvalidApiKeyError, JsonError, ModelNotFoundError,
    RateLimitExceededError, RequestError,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=120.0, write=30.0, pool=10.0)


def create_client(timeout: httpx.Timeout = None, transport: httpx.AsyncBaseTransport = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout or DEFAULT_TIMEOUT, transport=transport)


def classify_error(status_code: int, body: str, model: str) -> ChatError:
    """Maps a non-success vendor response to the error taxonomy."""
    if status_code in (401, 403):
        return InvalidApiKeyError()
    if status_code == 429:
        return RateLimitExceededError()
    if status_code == 404:
        return ModelNotFoundError(model)
    try:
        error = json.loads(body).get("error")
        if isinstance(error, dict) and error.get("message"):
            return ApiError(error["message"])
    except (ValueError, AttributeError):
        pass
    return ApiError(f"{status_code}: {body}")


async def send_request(client: httpx.AsyncClient, url: str, headers: Dict[str, str],
                       payload: Dict[str, Any], model: str, stream: bool) -> httpx.Response:
    """
    POSTs a vendor request. A non-success status raises the classified error
    before any body is handed back; with stream=True the returned response is
    still open and must be closed by the caller.
    """
    request = client.build_request("POST", url, headers=headers, json=payload)
    try:
        response = await client.send(request, stream=stream)
    except httpx.HTTPError as e:
        LOGGER.error(f"Request to {url} failed: {e}")
        raise RequestError(str(e)) from e

    if response.is_success:
        return response

    try:
        body = (await response.aread()).decode("utf-8", errors="replace")
    except httpx.HTTPError as e:
        raise RequestError(str(e)) from e
    finally:
        await response.aclose()
    error = classify_error(response.status_code, body, model)
    LOGGER.warning(f"Vendor returned {response.status_code} for model {model}: {error.message}")
    raise error


def decode_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise JsonError(str(e)) from e
    if not isinstance(data, dict):
        raise JsonError(f"expected a JSON object, got {type(data).__name__}")
    return data


async def check_credentials(client: httpx.AsyncClient, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> bool:
    """Sends a small request and reports only whether the status was a success."""
    try:
        response = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as e:
        raise RequestError(str(e)) from e
    LOGGER.info(f"Key validation against {url} returned {response.status_code}")
    return response.is_success
