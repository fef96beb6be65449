"""Repository implementations."""

from rwa_swap_relay.infrastructure.repositories.in_memory_execution_plan_repository import (
    InMemoryExecutionPlanRepository,
)
from rwa_swap_relay.infrastructure.repositories.in_memory_provider_repository import (
    InMemoryProviderRepository,
)

__all__ = ["InMemoryExecutionPlanRepository", "InMemoryProviderRepository"]
