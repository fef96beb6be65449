"""Swap session routes."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path

from rwa_swap_relay.api.dependencies import get_node_client, get_swap_service
from rwa_swap_relay.application.services import SwapSessionService
from rwa_swap_relay.domain.api_models import (
    CreateSwapSessionRequest,
    CreateSwapSessionResponse,
    ExecuteSwapRequest,
    ExecutionPlanDetailResponse,
    ExecutionPlanListResponse,
    ExecutionPlanResponse,
    RemoteSessionListResponse,
    RemoteSessionResponse,
    SwapPhaseResponse,
    SwapSessionResponse,
)
from rwa_swap_relay.domain.entities import SwapSession
from rwa_swap_relay.domain.errors import (
    ExecutionPlanNotFoundError,
    ExecutionPlanValidationError,
    NotAuthenticatedError,
    SessionStateError,
    SwapRelayError,
)
from rwa_swap_relay.infrastructure.clearnode import ClearNodeClient

router = APIRouter(prefix="/api/sessions", tags=["swap sessions"])


def _raise_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, ExecutionPlanNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (ExecutionPlanValidationError, SessionStateError)):
        raise HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotAuthenticatedError):
        raise HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, SwapRelayError):
        raise HTTPException(status_code=500, detail=str(exc))
    raise HTTPException(status_code=500, detail="Unexpected swap session error")


def _phase_response(session: SwapSession) -> SwapPhaseResponse:
    return SwapPhaseResponse(
        plan_id=session.plan_id,
        session_id=session.session_id,
        status=session.status,
        version=session.current_version,
    )


@router.post("/create", response_model=CreateSwapSessionResponse, status_code=200)
async def create_swap_session(
    request: CreateSwapSessionRequest,
    service: SwapSessionService = Depends(get_swap_service),
) -> CreateSwapSessionResponse:
    """Register an execution plan and open its app session."""

    try:
        view = await service.create_swap_session(request)
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return CreateSwapSessionResponse(
        plan_id=view.plan.plan_id,
        session_id=view.session.session_id or "",
        participants=view.plan.participants,
        status=view.session.status,
    )


@router.post("/execute", response_model=SwapPhaseResponse, status_code=200)
async def execute_swap(
    request: ExecuteSwapRequest,
    service: SwapSessionService = Depends(get_swap_service),
    node_client: ClearNodeClient = Depends(get_node_client),
) -> SwapPhaseResponse:
    """Run a whole swap, connecting and authenticating on demand."""

    try:
        if not node_client.auth.is_authenticated:
            await node_client.authenticate()
        create_request = request.with_default_seller(node_client.auth.main_address)
        return _phase_response(await service.execute_swap(create_request))
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)


@router.get("/remote/active", response_model=RemoteSessionListResponse, status_code=200)
async def list_active_remote_sessions(
    service: SwapSessionService = Depends(get_swap_service),
) -> RemoteSessionListResponse:
    """List app sessions opened by this relay and not yet closed."""

    sessions = [
        RemoteSessionResponse.from_remote(remote) for remote in service.active_remote_sessions()
    ]
    return RemoteSessionListResponse(sessions=sessions, count=len(sessions))


@router.post("/{plan_id}/lock", response_model=SwapPhaseResponse, status_code=200)
async def lock_funds(
    plan_id: str = Path(...),
    service: SwapSessionService = Depends(get_swap_service),
) -> SwapPhaseResponse:
    try:
        return _phase_response(await service.lock_funds(plan_id))
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)


@router.post("/{plan_id}/finalize", response_model=SwapPhaseResponse, status_code=200)
async def finalize_swap(
    plan_id: str = Path(...),
    service: SwapSessionService = Depends(get_swap_service),
) -> SwapPhaseResponse:
    try:
        return _phase_response(await service.finalize_swap(plan_id))
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)


@router.post("/{plan_id}/close", response_model=SwapPhaseResponse, status_code=200)
async def close_swap_session(
    plan_id: str = Path(...),
    service: SwapSessionService = Depends(get_swap_service),
) -> SwapPhaseResponse:
    try:
        return _phase_response(await service.close_swap_session(plan_id))
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)


@router.get("/{plan_id}", response_model=ExecutionPlanDetailResponse, status_code=200)
async def get_swap_session(
    plan_id: str = Path(...),
    service: SwapSessionService = Depends(get_swap_service),
) -> ExecutionPlanDetailResponse:
    """Return a plan and the state of its app session."""

    try:
        plan = await service.get_plan(plan_id)
        session = await service.get_session(plan_id)
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return ExecutionPlanDetailResponse(
        plan=ExecutionPlanResponse.from_plan(plan),
        session=SwapSessionResponse.from_session(session),
    )


@router.get("", response_model=ExecutionPlanListResponse, status_code=200)
async def list_swap_sessions(
    service: SwapSessionService = Depends(get_swap_service),
) -> ExecutionPlanListResponse:
    try:
        plans = await service.list_plans()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return ExecutionPlanListResponse(
        plans=[ExecutionPlanResponse.from_plan(plan) for plan in plans],
        count=len(plans),
    )


__all__ = ["router"]
