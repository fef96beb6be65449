"""Domain public API."""

from rwa_swap_relay.domain.entities import (
    Allocation,
    AppSessionDefinition,
    BuyerFill,
    ExecutionPlan,
    LiquidityProvider,
    RemoteSession,
    SwapSession,
)
from rwa_swap_relay.domain.errors import (
    AllocationConservationError,
    AuthenticationError,
    ExecutionPlanConflictError,
    ExecutionPlanNotFoundError,
    ExecutionPlanValidationError,
    NodeConnectionError,
    NotAuthenticatedError,
    ProtocolError,
    ProviderNotFoundError,
    RemoteRejectionError,
    RequestTimeoutError,
    SessionStateError,
    SwapRelayError,
    VersionConflictError,
)
from rwa_swap_relay.domain.ports import (
    AppSessionGateway,
    ExecutionPlanRepository,
    MessageSigner,
    NodeConnection,
    NodeConnector,
    ProviderRepository,
    TypedDataSigner,
)
from rwa_swap_relay.domain.session_types import (
    AuthState,
    ConnectionState,
    StateIntent,
    SwapPhase,
    SwapSessionStatus,
)

__all__ = [
    "Allocation",
    "AllocationConservationError",
    "AppSessionDefinition",
    "AppSessionGateway",
    "AuthState",
    "AuthenticationError",
    "BuyerFill",
    "ConnectionState",
    "ExecutionPlan",
    "ExecutionPlanConflictError",
    "ExecutionPlanNotFoundError",
    "ExecutionPlanRepository",
    "ExecutionPlanValidationError",
    "LiquidityProvider",
    "MessageSigner",
    "NodeConnection",
    "NodeConnectionError",
    "NodeConnector",
    "NotAuthenticatedError",
    "ProtocolError",
    "ProviderNotFoundError",
    "ProviderRepository",
    "RemoteRejectionError",
    "RemoteSession",
    "RequestTimeoutError",
    "SessionStateError",
    "StateIntent",
    "SwapPhase",
    "SwapRelayError",
    "SwapSession",
    "SwapSessionStatus",
    "TypedDataSigner",
    "VersionConflictError",
]
