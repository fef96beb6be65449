"""Application services public API."""

from rwa_swap_relay.application.services.provider_service import ProviderService
from rwa_swap_relay.application.services.swap_session_service import (
    SwapSessionService,
    SwapSessionView,
)

__all__ = ["ProviderService", "SwapSessionService", "SwapSessionView"]
