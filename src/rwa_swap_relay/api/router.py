"""Top-level API router composition."""

from fastapi import APIRouter

from rwa_swap_relay.api.routes import (
    health_router,
    node_router,
    providers_router,
    sessions_router,
)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(node_router)
api_router.include_router(sessions_router)
api_router.include_router(providers_router)

__all__ = ["api_router"]
