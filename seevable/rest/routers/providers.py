from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from seevable.chat.config import Config
from seevable.chat.errors import RequestError, UnknownProviderError
from seevable.chat.providers import ProviderName, available_models
from seevable.rest.models.providers import ProviderRef, ValidateKeyRequest, ValidateKeyResponse
from seevable.rest.dependencies.providers import get_config, get_provider_factory

router = APIRouter(prefix="/providers", tags=["Provider"])
LOGGER = logging.getLogger(__name__)


def _parse_provider(name: str) -> ProviderName:
    try:
        return ProviderName.parse(name)
    except UnknownProviderError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("", response_model=List[ProviderRef])
async def get_providers():
    """List the supported vendors with their models."""
    refs = []
    for provider_name in ProviderName:
        models = available_models(provider_name)
        refs.append(ProviderRef(name=provider_name.value, models=models, default_model=models[0]))
    return refs


@router.get("/{name}/models", response_model=List[str])
async def get_models(name: str):
    return available_models(_parse_provider(name))


@router.post("/{name}/validate", response_model=ValidateKeyResponse)
async def validate_api_key(
    name: str,
    request_body: ValidateKeyRequest,
    config: Config = Depends(get_config),
    provider_factory=Depends(get_provider_factory)
):
    """
    Check an API key with a minimal request to the vendor. Rejected keys and
    transport failures both report valid=false.
    """
    provider_name = _parse_provider(name)
    adapter = provider_factory(provider_name, request_body.api_key, timeout=config.get_http_timeout())
    try:
        valid = await adapter.validate_api_key(request_body.api_key)
    except RequestError as e:
        LOGGER.warning(f"API key validation for {provider_name.value} could not reach the vendor: {e}")
        valid = False
    finally:
        await adapter.aclose()
    LOGGER.info(f"API key validation for {provider_name.value}: valid={valid}")
    return ValidateKeyResponse(provider=provider_name.value, valid=valid)
