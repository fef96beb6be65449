"""Infrastructure layer public API."""

from rwa_swap_relay.infrastructure.clearnode import (
    AuthHandshakeController,
    ClearNodeClient,
    RequestCorrelator,
)
from rwa_swap_relay.infrastructure.repositories import (
    InMemoryExecutionPlanRepository,
    InMemoryProviderRepository,
)
from rwa_swap_relay.infrastructure.signing import EthereumSigner

__all__ = [
    "AuthHandshakeController",
    "ClearNodeClient",
    "EthereumSigner",
    "InMemoryExecutionPlanRepository",
    "InMemoryProviderRepository",
    "RequestCorrelator",
]
