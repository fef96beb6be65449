"""Dependency providers for FastAPI routes."""

from functools import lru_cache

from fastapi import Depends

from rwa_swap_relay.application.services import ProviderService, SwapSessionService
from rwa_swap_relay.bootstrap import SwapRelayRuntime, build_runtime
from rwa_swap_relay.config import Settings
from rwa_swap_relay.infrastructure.clearnode import ClearNodeClient


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings."""

    return Settings()


@lru_cache(maxsize=1)
def get_runtime() -> SwapRelayRuntime:
    """Return the service graph built from settings."""

    return build_runtime(get_settings())


def get_swap_service(runtime: SwapRelayRuntime = Depends(get_runtime)) -> SwapSessionService:
    return runtime.swap_service


def get_provider_service(runtime: SwapRelayRuntime = Depends(get_runtime)) -> ProviderService:
    return runtime.provider_service


def get_node_client(runtime: SwapRelayRuntime = Depends(get_runtime)) -> ClearNodeClient:
    return runtime.node_client


__all__ = [
    "get_node_client",
    "get_provider_service",
    "get_runtime",
    "get_settings",
    "get_swap_service",
]
