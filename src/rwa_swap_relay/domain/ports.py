"""Ports for signing, node transport, and in-memory registries."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from rwa_swap_relay.domain.entities import (
    Allocation,
    AppSessionDefinition,
    ExecutionPlan,
    LiquidityProvider,
    RemoteSession,
    SwapSession,
)
from rwa_swap_relay.domain.node_models import AppSessionResult, LedgerBalance
from rwa_swap_relay.domain.session_types import StateIntent


@runtime_checkable
class MessageSigner(Protocol):
    """Signs request envelopes on behalf of one address."""

    @property
    def address(self) -> str:
        """Checksummed address derived from the signing key."""

    def sign_payload(self, payload: Any) -> str:
        """Return a hex ECDSA signature over the compact JSON encoding of `payload`."""


@runtime_checkable
class TypedDataSigner(MessageSigner, Protocol):
    """Signer able to produce EIP-712 domain-separated signatures."""

    def sign_typed_data(self, full_message: dict[str, Any]) -> str:
        """Return a hex signature over an EIP-712 typed-data message."""


class NodeConnection(Protocol):
    """Duplex text-frame connection to a coordination node."""

    async def send(self, message: str) -> None:
        """Write one text frame."""

    async def recv(self) -> str | bytes:
        """Read one frame; raises when the connection is closed."""

    async def close(self) -> None:
        """Close the connection."""


class NodeConnector(Protocol):
    """Factory opening a :class:`NodeConnection` to an endpoint."""

    async def __call__(self, url: str, timeout_seconds: float) -> NodeConnection:
        """Open a connection or raise."""


class AppSessionGateway(Protocol):
    """Authenticated app session operations on the coordination node."""

    async def get_ledger_balances(self, participant: str | None = None) -> list[LedgerBalance]:
        """Return unified ledger balances."""

    async def create_app_session(
        self,
        definition: AppSessionDefinition,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> RemoteSession:
        """Create a session and return its mirror."""

    async def submit_app_state(
        self,
        session_id: str,
        intent: StateIntent,
        version: int,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> RemoteSession:
        """Submit the next versioned state."""

    async def close_app_session(
        self,
        session_id: str,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> AppSessionResult:
        """Close a session with its final allocations."""

    def active_sessions(self) -> list[RemoteSession]:
        """Return mirrors of sessions not yet closed."""


class ExecutionPlanRepository(Protocol):
    """Registry of execution plans and the swap session attached to each."""

    async def create(self, plan: ExecutionPlan) -> SwapSession:
        """Insert a plan with a fresh pending session; conflict if the id exists."""

    async def get(self, plan_id: str) -> ExecutionPlan:
        """Return a plan or raise :class:`ExecutionPlanNotFoundError`."""

    async def list_plans(self) -> list[ExecutionPlan]:
        """Return all plans in insertion order."""

    async def remove(self, plan_id: str) -> None:
        """Remove a plan and its session record."""

    async def get_session(self, plan_id: str) -> SwapSession:
        """Return the session record of a plan or raise not-found."""

    async def save_session(self, session: SwapSession) -> None:
        """Persist an updated session record for an existing plan."""

    async def list_sessions(self) -> list[SwapSession]:
        """Return all session records in plan insertion order."""


class ProviderRepository(Protocol):
    """Registry of liquidity providers."""

    async def upsert(self, provider: LiquidityProvider) -> None:
        """Create or replace a provider by address."""

    async def get(self, address: str) -> LiquidityProvider | None:
        """Return a provider by address."""

    async def list_providers(self) -> list[LiquidityProvider]:
        """Return all providers in registration order."""


__all__ = [
    "AppSessionGateway",
    "ExecutionPlanRepository",
    "MessageSigner",
    "NodeConnection",
    "NodeConnector",
    "ProviderRepository",
    "TypedDataSigner",
]
