"""Lifecycle states for node connections, authentication, and swap sessions."""

from enum import StrEnum


class ConnectionState(StrEnum):
    """Node transport states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class AuthState(StrEnum):
    """Challenge/response handshake states."""

    UNAUTHENTICATED = "unauthenticated"
    AWAITING_CHALLENGE = "awaiting_challenge"
    AWAITING_VERIFICATION = "awaiting_verification"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class SwapSessionStatus(StrEnum):
    """Swap session lifecycle states."""

    PENDING = "pending"
    CREATED = "created"
    LOCKED = "locked"
    FINALIZED = "finalized"
    CLOSED = "closed"
    FAILED = "failed"


class SwapPhase(StrEnum):
    """Phases that advance a created swap session."""

    LOCK = "lock"
    FINALIZE = "finalize"
    CLOSE = "close"


class StateIntent(StrEnum):
    """Intent tags carried by app state submissions."""

    OPERATE = "operate"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


PHASE_PRECONDITIONS: dict[SwapPhase, SwapSessionStatus] = {
    SwapPhase.LOCK: SwapSessionStatus.CREATED,
    SwapPhase.FINALIZE: SwapSessionStatus.LOCKED,
    SwapPhase.CLOSE: SwapSessionStatus.FINALIZED,
}

PHASE_RESULTS: dict[SwapPhase, SwapSessionStatus] = {
    SwapPhase.LOCK: SwapSessionStatus.LOCKED,
    SwapPhase.FINALIZE: SwapSessionStatus.FINALIZED,
    SwapPhase.CLOSE: SwapSessionStatus.CLOSED,
}


__all__ = [
    "PHASE_PRECONDITIONS",
    "PHASE_RESULTS",
    "AuthState",
    "ConnectionState",
    "StateIntent",
    "SwapPhase",
    "SwapSessionStatus",
]
