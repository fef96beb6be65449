"""In-memory liquidity provider registry."""

from __future__ import annotations

import asyncio

from rwa_swap_relay.domain.entities import LiquidityProvider
from rwa_swap_relay.domain.ports import ProviderRepository


class InMemoryProviderRepository(ProviderRepository):
    """Providers keyed by lower-cased address."""

    def __init__(self) -> None:
        self._providers: dict[str, LiquidityProvider] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, provider: LiquidityProvider) -> None:
        async with self._lock:
            self._providers[provider.address.lower()] = provider

    async def get(self, address: str) -> LiquidityProvider | None:
        return self._providers.get(address.lower())

    async def list_providers(self) -> list[LiquidityProvider]:
        async with self._lock:
            return list(self._providers.values())


__all__ = ["InMemoryProviderRepository"]
