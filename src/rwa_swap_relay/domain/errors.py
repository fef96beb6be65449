"""Domain exceptions for node communication and swap session operations."""


class SwapRelayError(Exception):
    """Base class for relay errors."""


class NodeConnectionError(SwapRelayError, ConnectionError):
    """Raised when the node transport is unavailable or drops."""


class RequestTimeoutError(SwapRelayError, TimeoutError):
    """Raised when no matching response arrives within the request budget."""


class ProtocolError(SwapRelayError):
    """Raised when the node returns a malformed or unexpected response."""


class RemoteRejectionError(ProtocolError):
    """Raised when the node explicitly rejects a request."""


class AuthenticationError(ProtocolError):
    """Raised when the node refuses the auth verification."""


class NotAuthenticatedError(SwapRelayError):
    """Raised when an authenticated operation runs before the handshake succeeded."""


class VersionConflictError(SwapRelayError):
    """Raised when a state update version is not the expected successor."""


class ExecutionPlanNotFoundError(SwapRelayError):
    """Raised when an execution plan or its session cannot be found."""


class ProviderNotFoundError(SwapRelayError):
    """Raised when a liquidity provider is not registered."""


class ExecutionPlanValidationError(SwapRelayError):
    """Raised when a caller-supplied plan is inconsistent."""


class AllocationConservationError(ExecutionPlanValidationError):
    """Raised when per-asset allocation totals differ between phases."""


class ExecutionPlanConflictError(SwapRelayError):
    """Raised when an execution plan id is already registered."""


class SessionStateError(SwapRelayError):
    """Raised when a lifecycle phase is requested out of order."""


__all__ = [
    "AllocationConservationError",
    "AuthenticationError",
    "ExecutionPlanConflictError",
    "ExecutionPlanNotFoundError",
    "ExecutionPlanValidationError",
    "NodeConnectionError",
    "NotAuthenticatedError",
    "ProtocolError",
    "ProviderNotFoundError",
    "RemoteRejectionError",
    "RequestTimeoutError",
    "SessionStateError",
    "SwapRelayError",
    "VersionConflictError",
]
