"""HTTP API layer."""

from rwa_swap_relay.api.router import api_router

__all__ = ["api_router"]
