"""Route modules public API."""

from rwa_swap_relay.api.routes.health import router as health_router
from rwa_swap_relay.api.routes.node import router as node_router
from rwa_swap_relay.api.routes.providers import router as providers_router
from rwa_swap_relay.api.routes.sessions import router as sessions_router

__all__ = ["health_router", "node_router", "providers_router", "sessions_router"]
