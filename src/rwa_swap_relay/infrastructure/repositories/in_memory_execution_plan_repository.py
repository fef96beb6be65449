"""In-memory repository implementation for execution plans."""

from __future__ import annotations

import asyncio
from dataclasses import replace

from rwa_swap_relay.domain.entities import ExecutionPlan, SwapSession
from rwa_swap_relay.domain.errors import ExecutionPlanConflictError, ExecutionPlanNotFoundError
from rwa_swap_relay.domain.ports import ExecutionPlanRepository


class InMemoryExecutionPlanRepository(ExecutionPlanRepository):
    """Process-local plan store; session records are copied in and out."""

    def __init__(self) -> None:
        self._plans: dict[str, ExecutionPlan] = {}
        self._sessions: dict[str, SwapSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, plan: ExecutionPlan) -> SwapSession:
        """Insert a plan together with a pending session record."""

        async with self._lock:
            if plan.plan_id in self._plans:
                raise ExecutionPlanConflictError(
                    f"Execution plan '{plan.plan_id}' already exists."
                )
            session = SwapSession(plan_id=plan.plan_id)
            self._plans[plan.plan_id] = plan
            self._sessions[plan.plan_id] = session
            return replace(session)

    async def get(self, plan_id: str) -> ExecutionPlan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise ExecutionPlanNotFoundError(f"Execution plan '{plan_id}' not found.")
        return plan

    async def list_plans(self) -> list[ExecutionPlan]:
        """Return all plans in insertion order."""

        async with self._lock:
            return list(self._plans.values())

    async def remove(self, plan_id: str) -> None:
        async with self._lock:
            self._plans.pop(plan_id, None)
            self._sessions.pop(plan_id, None)

    async def get_session(self, plan_id: str) -> SwapSession:
        session = self._sessions.get(plan_id)
        if session is None:
            raise ExecutionPlanNotFoundError(f"Execution plan '{plan_id}' not found.")
        return replace(session)

    async def save_session(self, session: SwapSession) -> None:
        """Replace the session record of an existing plan."""

        async with self._lock:
            if session.plan_id not in self._plans:
                raise ExecutionPlanNotFoundError(
                    f"Execution plan '{session.plan_id}' not found."
                )
            self._sessions[session.plan_id] = replace(session)

    async def list_sessions(self) -> list[SwapSession]:
        async with self._lock:
            return [replace(session) for session in self._sessions.values()]


__all__ = ["InMemoryExecutionPlanRepository"]
