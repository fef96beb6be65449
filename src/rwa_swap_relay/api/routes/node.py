"""Node connection and authentication routes."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query

from rwa_swap_relay.api.dependencies import get_node_client
from rwa_swap_relay.domain.api_models import LedgerBalancesResponse, NodeStatusResponse
from rwa_swap_relay.domain.errors import NotAuthenticatedError, SwapRelayError
from rwa_swap_relay.infrastructure.clearnode import ClearNodeClient, NodeStatus

_TOKEN_PREVIEW_LENGTH = 40

router = APIRouter(prefix="/api/node", tags=["node"])


def _raise_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, NotAuthenticatedError):
        raise HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, SwapRelayError):
        raise HTTPException(status_code=500, detail=str(exc))
    raise HTTPException(status_code=500, detail="Unexpected node error")


def node_status_response(status: NodeStatus) -> NodeStatusResponse:
    """Render a status snapshot; the bearer token is shortened."""

    token = status.token
    if token is not None and len(token) > _TOKEN_PREVIEW_LENGTH:
        token = f"{token[:_TOKEN_PREVIEW_LENGTH]}..."
    return NodeStatusResponse(
        endpoint=status.endpoint,
        connection=str(status.connection),
        auth=str(status.auth),
        authenticated=status.authenticated,
        address=status.address,
        session_key=status.session_key,
        application=status.application,
        scope=status.scope,
        expires_at=status.expires_at,
        jwt_token=token,
    )


@router.get("/status", response_model=NodeStatusResponse, status_code=200)
async def get_node_status(
    client: ClearNodeClient = Depends(get_node_client),
) -> NodeStatusResponse:
    return node_status_response(client.status())


@router.post("/connect", response_model=NodeStatusResponse, status_code=200)
async def connect_node(
    client: ClearNodeClient = Depends(get_node_client),
) -> NodeStatusResponse:
    """Open the node connection without authenticating."""

    try:
        await client.connect()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return node_status_response(client.status())


@router.post("/auth", response_model=NodeStatusResponse, status_code=200)
async def authenticate_node(
    client: ClearNodeClient = Depends(get_node_client),
) -> NodeStatusResponse:
    """Connect if needed and run the handshake with a fresh session key."""

    try:
        await client.authenticate()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return node_status_response(client.status())


@router.post("/reset-session-key", response_model=NodeStatusResponse, status_code=200)
async def reset_session_key(
    client: ClearNodeClient = Depends(get_node_client),
) -> NodeStatusResponse:
    client.reset_session_key()
    return node_status_response(client.status())


@router.get("/ledger", response_model=LedgerBalancesResponse, status_code=200)
async def get_ledger_balances(
    participant: str | None = Query(default=None),
    client: ClearNodeClient = Depends(get_node_client),
) -> LedgerBalancesResponse:
    try:
        balances = await client.get_ledger_balances(participant)
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return LedgerBalancesResponse(balances=balances)


__all__ = ["node_status_response", "router"]
