"""Challenge/response authentication against the ClearNode.

1. ``auth_request`` announces the main wallet, a fresh session key, the
   spending allowance, expiry, and scope. The node answers ``auth_challenge``.
2. The main wallet signs an EIP-712 ``Policy`` over the challenge and the
   announced parameters; ``auth_verify`` carries that signature. The node
   answers ``auth_verify`` with ``success`` and an optional bearer token.

Subsequent requests are signed by the session key only.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from rwa_swap_relay.domain.errors import (
    AuthenticationError,
    NotAuthenticatedError,
    RemoteRejectionError,
    SwapRelayError,
)
from rwa_swap_relay.domain.node_models import AuthChallengeResult, AuthVerifyResult
from rwa_swap_relay.domain.ports import MessageSigner, TypedDataSigner
from rwa_swap_relay.domain.session_types import AuthState
from rwa_swap_relay.infrastructure.clearnode.correlator import RequestCorrelator
from rwa_swap_relay.infrastructure.clearnode.rpc import RPCMethod, build_request, expect_result
from rwa_swap_relay.infrastructure.signing import EthereumSigner

_DEFAULT_SESSION_EXPIRY_SECONDS = 3600

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthSession:
    """Result of one authentication attempt."""

    main_address: str
    session_address: str
    session_signer: MessageSigner = field(repr=False)
    application: str
    scope: str
    expires_at: int
    allowances: list[dict[str, str]]
    authenticated: bool = False
    token: str | None = field(default=None, repr=False)


def build_policy_typed_data(
    *,
    application: str,
    challenge: str,
    scope: str,
    wallet: str,
    session_key: str,
    expires_at: int,
    allowances: list[dict[str, str]],
) -> dict[str, Any]:
    """EIP-712 message the main wallet signs to authorize a session key."""

    return {
        "types": {
            "EIP712Domain": [{"name": "name", "type": "string"}],
            "Policy": [
                {"name": "challenge", "type": "string"},
                {"name": "scope", "type": "string"},
                {"name": "wallet", "type": "address"},
                {"name": "session_key", "type": "address"},
                {"name": "expires_at", "type": "uint64"},
                {"name": "allowances", "type": "Allowance[]"},
            ],
            "Allowance": [
                {"name": "asset", "type": "string"},
                {"name": "amount", "type": "string"},
            ],
        },
        "primaryType": "Policy",
        "domain": {"name": application},
        "message": {
            "challenge": challenge,
            "scope": scope,
            "wallet": wallet,
            "session_key": session_key,
            "expires_at": expires_at,
            "allowances": allowances,
        },
    }


class AuthHandshakeController:
    """Drives the handshake and gates every authenticated operation."""

    def __init__(
        self,
        correlator: RequestCorrelator,
        main_signer: TypedDataSigner,
        application: str,
        scope: str,
        allowance_asset: str,
        allowance_amount: int,
        session_expiry_seconds: int = _DEFAULT_SESSION_EXPIRY_SECONDS,
        session_signer_factory: Callable[[], MessageSigner] = EthereumSigner.generate,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._correlator = correlator
        self._main_signer = main_signer
        self._application = application
        self._scope = scope
        self._allowance_asset = allowance_asset
        self._allowance_amount = allowance_amount
        self._session_expiry_seconds = session_expiry_seconds
        self._session_signer_factory = session_signer_factory
        self._clock = clock
        self._state = AuthState.UNAUTHENTICATED
        self._session: AuthSession | None = None
        self._lock = asyncio.Lock()
        correlator.add_disconnect_listener(self._on_disconnect)

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def main_address(self) -> str:
        return self._main_signer.address

    @property
    def application(self) -> str:
        return self._application

    @property
    def scope(self) -> str:
        return self._scope

    def require_authenticated(self) -> AuthSession:
        """Return the live session or fail fast."""

        session = self._session
        if self._state is not AuthState.AUTHENTICATED or session is None:
            raise NotAuthenticatedError("Not authenticated with the node; authenticate first.")
        return session

    async def authenticate(self) -> AuthSession:
        """Run the two-step handshake with a freshly generated session key."""

        async with self._lock:
            session_signer = self._session_signer_factory()
            session = AuthSession(
                main_address=self._main_signer.address,
                session_address=session_signer.address,
                session_signer=session_signer,
                application=self._application,
                scope=self._scope,
                expires_at=int(self._clock()) + self._session_expiry_seconds,
                allowances=[
                    {"asset": self._allowance_asset, "amount": str(self._allowance_amount)}
                ],
            )
            self._session = session
            self._state = AuthState.AWAITING_CHALLENGE
            try:
                challenge = await self._request_challenge(session)
                self._state = AuthState.AWAITING_VERIFICATION
                await self._verify(session, challenge)
            except (SwapRelayError, asyncio.CancelledError) as exc:
                self._state = AuthState.FAILED
                self._session = None
                logger.warning("Authentication of %s failed: %s", session.main_address, exc)
                raise

            self._state = AuthState.AUTHENTICATED
            logger.info(
                "Authenticated %s with session key %s (expires at %s).",
                session.main_address,
                session.session_address,
                session.expires_at,
            )
            return session

    def reset(self) -> None:
        """Forget the session key and token."""

        self._session = None
        self._state = AuthState.UNAUTHENTICATED

    async def _request_challenge(self, session: AuthSession) -> str:
        frame = build_request(
            self._correlator.next_request_id(),
            RPCMethod.AUTH_REQUEST,
            {
                "address": session.main_address,
                "session_key": session.session_address,
                "application": session.application,
                "allowances": session.allowances,
                "expires_at": session.expires_at,
                "scope": session.scope,
            },
        )
        response = await self._correlator.send_and_await(frame)
        result = expect_result(response, RPCMethod.AUTH_CHALLENGE, AuthChallengeResult)
        return result.challenge_message

    async def _verify(self, session: AuthSession, challenge: str) -> None:
        signature = self._main_signer.sign_typed_data(
            build_policy_typed_data(
                application=session.application,
                challenge=challenge,
                scope=session.scope,
                wallet=session.main_address,
                session_key=session.session_address,
                expires_at=session.expires_at,
                allowances=session.allowances,
            )
        )
        frame = build_request(
            self._correlator.next_request_id(),
            RPCMethod.AUTH_VERIFY,
            {"challenge": challenge},
        )
        response = await self._correlator.send_and_await({"req": frame["req"], "sig": [signature]})
        try:
            result = expect_result(response, RPCMethod.AUTH_VERIFY, AuthVerifyResult)
        except RemoteRejectionError as exc:
            raise AuthenticationError(f"Authentication rejected: {exc}") from exc
        if not result.success:
            raise AuthenticationError("Node reported an unsuccessful auth_verify.")
        session.authenticated = True
        session.token = result.jwt_token

    def _on_disconnect(self) -> None:
        if self._session is None and self._state is not AuthState.AUTHENTICATED:
            return
        logger.info("Node connection lost; authentication invalidated.")
        if self._session is not None:
            self._session.authenticated = False
        self._session = None
        self._state = AuthState.UNAUTHENTICATED


__all__ = ["AuthHandshakeController", "AuthSession", "build_policy_typed_data"]
