"""Swap session use-case service."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from rwa_swap_relay.domain.allocations import (
    assert_conserved,
    build_final_allocations,
    build_lock_allocations,
    equal_weights,
    validate_plan,
)
from rwa_swap_relay.domain.api_models import CreateSwapSessionRequest
from rwa_swap_relay.domain.entities import (
    AppSessionDefinition,
    BuyerFill,
    ExecutionPlan,
    RemoteSession,
    SwapSession,
)
from rwa_swap_relay.domain.errors import ExecutionPlanNotFoundError, SessionStateError
from rwa_swap_relay.domain.node_models import LedgerBalance
from rwa_swap_relay.domain.ports import (
    AppSessionGateway,
    ExecutionPlanRepository,
    ProviderRepository,
)
from rwa_swap_relay.domain.session_types import (
    PHASE_PRECONDITIONS,
    PHASE_RESULTS,
    StateIntent,
    SwapPhase,
    SwapSessionStatus,
)

_DEFAULT_PAYMENT_ASSET = "usdc"
_DEFAULT_APP_PROTOCOL = "NitroRPC/0.4"
_PLAN_ID_PREFIX = "exec_"
_SWAP_COMPLETED = "swap_completed"

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(slots=True, frozen=True)
class SwapSessionView:
    """A plan together with the current record of its remote session."""

    plan: ExecutionPlan
    session: SwapSession


class SwapSessionService:
    """Drives the create, lock, finalize, close sequence of a swap."""

    def __init__(
        self,
        repository: ExecutionPlanRepository,
        gateway: AppSessionGateway,
        provider_repository: ProviderRepository | None = None,
        payment_asset: str = _DEFAULT_PAYMENT_ASSET,
        app_protocol: str = _DEFAULT_APP_PROTOCOL,
    ) -> None:
        self._repository = repository
        self._gateway = gateway
        self._provider_repository = provider_repository
        self._payment_asset = payment_asset
        self._app_protocol = app_protocol
        self._plan_locks: dict[str, asyncio.Lock] = {}

    async def create_swap_session(self, request: CreateSwapSessionRequest) -> SwapSessionView:
        """Store a plan and open its app session; the plan is removed if that fails."""

        plan = self._new_plan(request)
        validate_plan(plan)
        session = await self._repository.create(plan)

        weights = plan.weights or equal_weights(len(plan.participants))
        definition = AppSessionDefinition(
            protocol=self._app_protocol,
            participants=tuple(plan.participants),
            weights=weights,
            quorum=sum(weights),
            challenge=0,
            nonce=_now_ms(),
        )
        try:
            remote = await self._gateway.create_app_session(
                definition,
                build_lock_allocations(plan),
                self._session_data(plan, phase="lock"),
            )
        except BaseException:
            await self._repository.remove(plan.plan_id)
            logger.warning("Rolled back execution plan %s after failed create.", plan.plan_id)
            raise

        session.session_id = remote.session_id
        session.current_version = remote.version
        session.mark(SwapSessionStatus.CREATED)
        await self._repository.save_session(session)
        logger.info(
            "Execution plan %s backed by app session %s.",
            plan.plan_id,
            remote.session_id,
        )
        return SwapSessionView(plan=plan, session=session)

    async def lock_funds(self, plan_id: str) -> SwapSession:
        """Confirm the lock allocations as the next state."""

        return await self._advance(plan_id, SwapPhase.LOCK)

    async def finalize_swap(self, plan_id: str) -> SwapSession:
        """Submit the net settlement allocations as the next state."""

        return await self._advance(plan_id, SwapPhase.FINALIZE)

    async def close_swap_session(self, plan_id: str) -> SwapSession:
        """Close the app session with the final allocations."""

        return await self._advance(plan_id, SwapPhase.CLOSE)

    async def execute_swap(self, request: CreateSwapSessionRequest) -> SwapSession:
        """Run create, lock, finalize and close in one call.

        A failing phase stops the sequence with the plan kept and its session
        marked failed at that phase, so the remaining phases can be driven
        individually.
        """

        view = await self.create_swap_session(request)
        session = view.session
        for phase in (SwapPhase.LOCK, SwapPhase.FINALIZE, SwapPhase.CLOSE):
            session = await self._advance(view.plan.plan_id, phase)
        return session

    async def get_plan(self, plan_id: str) -> ExecutionPlan:
        return await self._repository.get(plan_id)

    async def list_plans(self) -> list[ExecutionPlan]:
        return await self._repository.list_plans()

    async def get_session(self, plan_id: str) -> SwapSession:
        return await self._repository.get_session(plan_id)

    async def list_sessions(self) -> list[SwapSession]:
        return await self._repository.list_sessions()

    def active_remote_sessions(self) -> list[RemoteSession]:
        return self._gateway.active_sessions()

    async def ledger_balances(self, participant: str | None = None) -> list[LedgerBalance]:
        return await self._gateway.get_ledger_balances(participant)

    async def _advance(self, plan_id: str, phase: SwapPhase) -> SwapSession:
        # Phases of one plan run one at a time; the record is read under the lock.
        await self._repository.get(plan_id)
        lock = self._plan_locks.setdefault(plan_id, asyncio.Lock())
        async with lock:
            return await self._advance_locked(plan_id, phase)

    async def _advance_locked(self, plan_id: str, phase: SwapPhase) -> SwapSession:
        plan = await self._repository.get(plan_id)
        session = await self._repository.get_session(plan_id)
        session_id = self._require_phase(session, phase)

        reference = build_lock_allocations(plan)
        allocations = reference if phase is SwapPhase.LOCK else build_final_allocations(plan)
        try:
            assert_conserved(reference, allocations)
            if phase is SwapPhase.CLOSE:
                await self._gateway.close_app_session(
                    session_id,
                    allocations,
                    self._session_data(plan, result=_SWAP_COMPLETED),
                )
            else:
                remote = await self._gateway.submit_app_state(
                    session_id,
                    StateIntent.OPERATE,
                    session.current_version + 1,
                    allocations,
                    self._phase_data(plan, phase),
                )
                session.current_version = remote.version
        except BaseException as exc:
            session.mark_failed(phase, exc)
            await self._repository.save_session(session)
            logger.warning("Phase %s of execution plan %s failed: %s", phase, plan_id, exc)
            raise

        session.mark(PHASE_RESULTS[phase])
        await self._repository.save_session(session)
        if phase is SwapPhase.CLOSE:
            await self._record_provider_swap(plan)
        logger.info(
            "Execution plan %s is %s at version %s.",
            plan_id,
            session.status,
            session.current_version,
        )
        return session

    def _require_phase(self, session: SwapSession, phase: SwapPhase) -> str:
        if session.session_id is None:
            raise ExecutionPlanNotFoundError(
                f"Execution plan '{session.plan_id}' has no app session."
            )
        expected = PHASE_PRECONDITIONS[phase]
        retrying = session.status is SwapSessionStatus.FAILED and session.failed_phase is phase
        if session.status is not expected and not retrying:
            raise SessionStateError(
                f"Cannot {phase} execution plan '{session.plan_id}' in status "
                f"'{session.status}'; expected '{expected}'."
            )
        return session.session_id

    async def _record_provider_swap(self, plan: ExecutionPlan) -> None:
        if self._provider_repository is None:
            return
        provider = await self._provider_repository.get(plan.provider)
        if provider is None:
            return
        provider.total_swaps += 1
        provider.total_volume += plan.total_payment_amount
        await self._provider_repository.upsert(provider)

    def _new_plan(self, request: CreateSwapSessionRequest) -> ExecutionPlan:
        return ExecutionPlan(
            plan_id=f"{_PLAN_ID_PREFIX}{uuid4().hex}",
            seller=request.seller,
            provider=request.provider,
            buyers=tuple(
                BuyerFill(
                    buyer=fill.buyer,
                    asset_amount=fill.asset_amount,
                    payment_amount=fill.payment_amount,
                )
                for fill in request.buyers
            ),
            token=request.token,
            payment_asset=request.payment_asset or self._payment_asset,
            total_asset_amount=request.total_asset_amount,
            total_payment_amount=request.total_payment_amount,
            provider_fee=request.provider_fee,
            weights=tuple(request.weights) if request.weights is not None else None,
        )

    def _phase_data(self, plan: ExecutionPlan, phase: SwapPhase) -> str:
        if phase is SwapPhase.FINALIZE:
            return self._session_data(plan, phase="finalized", result=_SWAP_COMPLETED)
        return self._session_data(plan, phase="locked")

    @staticmethod
    def _session_data(plan: ExecutionPlan, **fields: Any) -> str:
        payload: dict[str, Any] = {"executionPlanId": plan.plan_id, **fields}
        payload["timestamp"] = _now_ms()
        return json.dumps(payload)


__all__ = ["SwapSessionService", "SwapSessionView"]
