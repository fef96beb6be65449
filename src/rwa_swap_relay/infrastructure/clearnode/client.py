"""Authenticated ClearNode client used by the application services."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rwa_swap_relay.domain.entities import Allocation, AppSessionDefinition, RemoteSession
from rwa_swap_relay.domain.errors import ProtocolError, VersionConflictError
from rwa_swap_relay.domain.node_models import AppSessionResult, LedgerBalance, LedgerBalancesResult
from rwa_swap_relay.domain.session_types import (
    AuthState,
    ConnectionState,
    StateIntent,
    SwapSessionStatus,
)
from rwa_swap_relay.infrastructure.clearnode.auth import AuthHandshakeController, AuthSession
from rwa_swap_relay.infrastructure.clearnode.correlator import RequestCorrelator
from rwa_swap_relay.infrastructure.clearnode.rpc import (
    RPCMethod,
    RPCResponse,
    build_request,
    expect_result,
    sign_request,
)

_CLOSED_STATUS = "closed"

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NodeStatus:
    """Snapshot of the node connection and authentication."""

    endpoint: str
    connection: ConnectionState
    auth: AuthState
    address: str
    application: str
    scope: str
    session_key: str | None = None
    expires_at: int | None = None
    token: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.auth is AuthState.AUTHENTICATED


class ClearNodeClient:
    """Facade over one correlator and one auth controller."""

    def __init__(self, correlator: RequestCorrelator, auth: AuthHandshakeController) -> None:
        self._correlator = correlator
        self._auth = auth
        self._sessions: dict[str, RemoteSession] = {}

    @property
    def correlator(self) -> RequestCorrelator:
        return self._correlator

    @property
    def auth(self) -> AuthHandshakeController:
        return self._auth

    async def connect(self) -> None:
        await self._correlator.connect()

    async def authenticate(self) -> AuthSession:
        """Connect if needed, then run a fresh handshake."""

        await self._correlator.connect()
        return await self._auth.authenticate()

    async def start(self) -> AuthSession:
        return await self.authenticate()

    def reset_session_key(self) -> None:
        """Drop the current session key; the next call must re-authenticate."""

        self._auth.reset()
        logger.info("Session key discarded for %s.", self._auth.main_address)

    async def close(self) -> None:
        await self._correlator.close()
        self._auth.reset()

    def status(self) -> NodeStatus:
        session = self._auth.session
        return NodeStatus(
            endpoint=self._correlator.url,
            connection=self._correlator.state,
            auth=self._auth.state,
            address=self._auth.main_address,
            application=self._auth.application,
            scope=self._auth.scope,
            session_key=session.session_address if session else None,
            expires_at=session.expires_at if session else None,
            token=session.token if session else None,
        )

    async def get_ledger_balances(self, participant: str | None = None) -> list[LedgerBalance]:
        """Unified ledger balances of `participant`, or of the main wallet."""

        session = self._auth.require_authenticated()
        response = await self._call(
            session,
            RPCMethod.GET_LEDGER_BALANCES,
            {"participant": participant or session.main_address},
        )
        result = expect_result(response, RPCMethod.GET_LEDGER_BALANCES, LedgerBalancesResult)
        return result.ledger_balances

    async def create_app_session(
        self,
        definition: AppSessionDefinition,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> RemoteSession:
        session = self._auth.require_authenticated()
        response = await self._call(
            session,
            RPCMethod.CREATE_APP_SESSION,
            {
                "definition": definition.to_wire(),
                "allocations": [allocation.to_wire() for allocation in allocations],
                "session_data": session_data,
            },
        )
        result = expect_result(response, RPCMethod.CREATE_APP_SESSION, AppSessionResult)
        remote = RemoteSession(
            session_id=result.app_session_id,
            participants=list(definition.participants),
            version=result.version,
            status=SwapSessionStatus.CREATED,
            protocol=definition.protocol,
            allocations=list(allocations),
        )
        self._sessions[remote.session_id] = remote
        logger.info("Created app session %s at version %s.", remote.session_id, remote.version)
        return remote

    async def submit_app_state(
        self,
        session_id: str,
        intent: StateIntent,
        version: int,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> RemoteSession:
        """Submit the next state; `version` must be the mirror's version plus one."""

        session = self._auth.require_authenticated()
        remote = self._sessions.get(session_id)
        if remote is None:
            raise VersionConflictError(
                f"No open app session {session_id} is known; cannot submit version {version}."
            )
        if version != remote.version + 1:
            raise VersionConflictError(
                f"Session {session_id} is at version {remote.version}; "
                f"cannot submit version {version}."
            )

        response = await self._call(
            session,
            RPCMethod.SUBMIT_APP_STATE,
            {
                "app_session_id": session_id,
                "intent": str(intent),
                "version": version,
                "allocations": [allocation.to_wire() for allocation in allocations],
                "session_data": session_data,
            },
        )
        result = expect_result(response, RPCMethod.SUBMIT_APP_STATE, AppSessionResult)
        if result.app_session_id != session_id:
            raise ProtocolError(
                f"submit_app_state answered for {result.app_session_id}, expected {session_id}."
            )
        if result.version != version:
            raise VersionConflictError(
                f"Node reported version {result.version} for {session_id}, expected {version}."
            )
        remote.version = version
        remote.allocations = list(allocations)
        logger.info("Submitted state %s for app session %s.", version, session_id)
        return remote

    async def close_app_session(
        self,
        session_id: str,
        allocations: Sequence[Allocation],
        session_data: str,
    ) -> AppSessionResult:
        session = self._auth.require_authenticated()
        response = await self._call(
            session,
            RPCMethod.CLOSE_APP_SESSION,
            {
                "app_session_id": session_id,
                "allocations": [allocation.to_wire() for allocation in allocations],
                "session_data": session_data,
            },
        )
        result = expect_result(response, RPCMethod.CLOSE_APP_SESSION, AppSessionResult)
        if result.status != _CLOSED_STATUS:
            raise ProtocolError(
                f"Node reported status {result.status!r} after closing {session_id}."
            )

        remote = self._sessions.pop(session_id, None)
        if remote is not None:
            remote.status = SwapSessionStatus.CLOSED
            remote.allocations = list(allocations)
        logger.info("Closed app session %s.", session_id)
        return result

    def active_sessions(self) -> list[RemoteSession]:
        """Mirrors of sessions created through this client and not yet closed."""

        return list(self._sessions.values())

    async def _call(self, session: AuthSession, method: RPCMethod, params: Any) -> RPCResponse:
        frame = build_request(self._correlator.next_request_id(), method, params)
        return await self._correlator.send_and_await(sign_request(frame, session.session_signer))


__all__ = ["ClearNodeClient", "NodeStatus"]
