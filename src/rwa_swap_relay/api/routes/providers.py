"""Liquidity provider registry routes."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path

from rwa_swap_relay.api.dependencies import get_provider_service
from rwa_swap_relay.application.services import ProviderService
from rwa_swap_relay.domain.api_models import (
    ProviderListResponse,
    ProviderModel,
    ProviderRegistrationRequest,
    ProviderResponse,
)
from rwa_swap_relay.domain.errors import ProviderNotFoundError

router = APIRouter(prefix="/api/providers", tags=["providers"])


def _raise_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, ProviderNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    raise HTTPException(status_code=500, detail="Unexpected provider error")


@router.post("/register", response_model=ProviderResponse, status_code=200)
async def register_provider(
    request: ProviderRegistrationRequest,
    service: ProviderService = Depends(get_provider_service),
) -> ProviderResponse:
    try:
        provider = await service.register(request)
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return ProviderResponse(provider=ProviderModel.from_provider(provider))


@router.get("", response_model=ProviderListResponse, status_code=200)
async def list_providers(
    service: ProviderService = Depends(get_provider_service),
) -> ProviderListResponse:
    providers = [ProviderModel.from_provider(item) for item in await service.list_providers()]
    return ProviderListResponse(providers=providers, count=len(providers))


@router.get("/{address}", response_model=ProviderResponse, status_code=200)
async def get_provider(
    address: str = Path(...),
    service: ProviderService = Depends(get_provider_service),
) -> ProviderResponse:
    try:
        provider = await service.get(address)
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return ProviderResponse(provider=ProviderModel.from_provider(provider))


__all__ = ["router"]
