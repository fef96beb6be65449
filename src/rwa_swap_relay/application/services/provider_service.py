"""Liquidity provider registry service."""

from __future__ import annotations

import logging

from rwa_swap_relay.domain.api_models import ProviderRegistrationRequest
from rwa_swap_relay.domain.entities import LiquidityProvider
from rwa_swap_relay.domain.errors import ProviderNotFoundError
from rwa_swap_relay.domain.ports import ProviderRepository

_DEFAULT_NAME_PREFIX_LENGTH = 6

logger = logging.getLogger(__name__)


class ProviderService:
    """Registers and looks up liquidity providers."""

    def __init__(self, repository: ProviderRepository) -> None:
        self._repository = repository

    async def register(self, request: ProviderRegistrationRequest) -> LiquidityProvider:
        """Create or replace a provider; swap counters restart at zero."""

        name = request.name or f"Provider {request.address[:_DEFAULT_NAME_PREFIX_LENGTH]}"
        provider = LiquidityProvider(
            address=request.address,
            collateral=request.collateral,
            name=name,
        )
        await self._repository.upsert(provider)
        logger.info("Registered liquidity provider %s (%s).", provider.address, provider.name)
        return provider

    async def get(self, address: str) -> LiquidityProvider:
        provider = await self._repository.get(address)
        if provider is None:
            raise ProviderNotFoundError(f"Provider '{address}' not found.")
        return provider

    async def list_providers(self) -> list[LiquidityProvider]:
        return await self._repository.list_providers()


__all__ = ["ProviderService"]
