"""Health check routes."""

from fastapi import APIRouter, Depends

from rwa_swap_relay.api.dependencies import get_node_client
from rwa_swap_relay.api.routes.node import node_status_response
from rwa_swap_relay.infrastructure.clearnode import ClearNodeClient

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness probe."""

    return {"status": "ok"}


@router.get("/health")
async def health(client: ClearNodeClient = Depends(get_node_client)) -> dict[str, object]:
    """Readiness: ok only while the node session is authenticated."""

    status = client.status()
    return {
        "status": "ok" if status.authenticated else "degraded",
        "node": node_status_response(status).model_dump(by_alias=True),
    }


__all__ = ["router"]
