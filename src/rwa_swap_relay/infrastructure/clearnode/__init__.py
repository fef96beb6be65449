"""ClearNode WebSocket adapter."""

from rwa_swap_relay.infrastructure.clearnode.auth import AuthHandshakeController, AuthSession
from rwa_swap_relay.infrastructure.clearnode.client import ClearNodeClient, NodeStatus
from rwa_swap_relay.infrastructure.clearnode.correlator import (
    DEFAULT_BACKGROUND_METHODS,
    RequestCorrelator,
)
from rwa_swap_relay.infrastructure.clearnode.transport import connect_websocket

__all__ = [
    "DEFAULT_BACKGROUND_METHODS",
    "AuthHandshakeController",
    "AuthSession",
    "ClearNodeClient",
    "NodeStatus",
    "RequestCorrelator",
    "connect_websocket",
]
