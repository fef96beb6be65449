from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest

from rwa_swap_relay.bootstrap import SwapRelayRuntime, build_runtime
from rwa_swap_relay.config import Settings
from rwa_swap_relay.domain.errors import NodeConnectionError

TEST_PRIVATE_KEY = "0x" + "11" * 32
TEST_NODE_URL = "ws://clearnode.test/ws"

SELLER = "0x" + "a1" * 20
PROVIDER = "0x" + "b2" * 20
BUYERS = ("0x" + "c3" * 20, "0x" + "d4" * 20, "0x" + "e5" * 20)


def node_response(request_id: int, method: str, params: Any) -> dict[str, Any]:
    return {"res": [request_id, method, params, 1_700_000_000_000], "sig": ["0xnode"]}


class FakeNodeConnection:
    """In-memory duplex connection; replies come from an optional responder."""

    def __init__(
        self,
        responder: Callable[[dict[str, Any]], list[dict[str, Any]]] | None = None,
    ) -> None:
        self.responder = responder
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.closed:
            raise NodeConnectionError("fake connection is closed")
        frame = json.loads(message)
        self.sent.append(frame)
        if self.responder is not None:
            for reply in self.responder(frame):
                self.push(reply)

    async def recv(self) -> str:
        item = await self._inbox.get()
        if item is None:
            raise NodeConnectionError("fake connection dropped")
        return item

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)

    def push(self, frame: dict[str, Any] | str) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    def methods(self) -> list[str]:
        return [frame["req"][1] for frame in self.sent]


class FakeConnector:
    def __init__(self, connection: FakeNodeConnection) -> None:
        self.connection = connection
        self.calls = 0

    async def __call__(self, url: str, timeout_seconds: float) -> FakeNodeConnection:
        self.calls += 1
        await asyncio.sleep(0)
        return self.connection


class FakeClearNode:
    """Answers relay requests the way a ClearNode does, with switches for failures."""

    def __init__(self) -> None:
        self.rejections: dict[str, str] = {}
        self.challenge: str | None = "challenge-0001"
        self.auth_success = True
        self.version_skew = 0
        self.close_status = "closed"
        self.background_noise = True
        self.silent: set[str] = set()
        self.versions: dict[str, int] = {}
        self._session_count = 0

    def __call__(self, frame: dict[str, Any]) -> list[dict[str, Any]]:
        request_id, method, params, _ = frame["req"]
        replies: list[dict[str, Any]] = []
        if self.background_noise:
            replies.append(node_response(request_id, "bu", {"balance_updates": []}))

        if method in self.silent:
            return replies

        if method in self.rejections:
            replies.append(node_response(request_id, "error", {"error": self.rejections[method]}))
            return replies

        if method == "auth_request":
            challenge = {} if self.challenge is None else {"challenge_message": self.challenge}
            replies.append(node_response(request_id, "auth_challenge", challenge))
        elif method == "auth_verify":
            replies.append(
                node_response(
                    request_id,
                    "auth_verify",
                    {"success": self.auth_success, "jwtToken": "jwt-" + "x" * 64},
                )
            )
        elif method == "create_app_session":
            self._session_count += 1
            session_id = f"0xsession{self._session_count:04d}"
            self.versions[session_id] = 1
            replies.append(
                node_response(
                    request_id,
                    "create_app_session",
                    {"app_session_id": session_id, "version": 1, "status": "open"},
                )
            )
        elif method == "submit_app_state":
            session_id = params["app_session_id"]
            if params["version"] != self.versions.get(session_id, 0) + 1:
                replies.append(node_response(request_id, "error", {"error": "stale version"}))
                return replies
            version = params["version"] + self.version_skew
            self.versions[session_id] = version
            replies.append(
                node_response(
                    request_id,
                    "submit_app_state",
                    {"app_session_id": session_id, "version": version, "status": "open"},
                )
            )
        elif method == "close_app_session":
            session_id = params["app_session_id"]
            replies.append(
                node_response(
                    request_id,
                    "close_app_session",
                    {
                        "app_session_id": session_id,
                        "version": self.versions.get(session_id, 1) + 1,
                        "status": self.close_status,
                    },
                )
            )
        elif method == "get_ledger_balances":
            replies.append(
                node_response(
                    request_id,
                    "get_ledger_balances",
                    {"ledger_balances": [{"asset": "usdc", "amount": "1500"}]},
                )
            )
        else:
            replies.append(node_response(request_id, "error", {"error": f"unknown {method}"}))
        return replies


@pytest.fixture
def fake_node() -> FakeClearNode:
    return FakeClearNode()


@pytest.fixture
def node_connection(fake_node: FakeClearNode) -> FakeNodeConnection:
    return FakeNodeConnection(responder=fake_node)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        main_private_key=TEST_PRIVATE_KEY,
        clearnode_ws_url=TEST_NODE_URL,
        request_timeout_seconds=2.0,
        connect_timeout_seconds=2.0,
    )


@pytest.fixture
def runtime(settings: Settings, node_connection: FakeNodeConnection) -> SwapRelayRuntime:
    return build_runtime(settings, connector=FakeConnector(node_connection))


def swap_request_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "seller": SELLER,
        "provider": PROVIDER,
        "buyers": [
            {"buyer": BUYERS[0], "assetAmount": "30", "paymentAmount": "30"},
            {"buyer": BUYERS[1], "assetAmount": "40", "paymentAmount": "40"},
            {"buyer": BUYERS[2], "assetAmount": "30", "paymentAmount": "30"},
        ],
        "token": "rwa-gold",
        "paymentAsset": "usdc",
        "totalAssetAmount": "100",
        "totalPaymentAmount": "95",
        "providerFee": "5",
    }
    payload.update(overrides)
    return payload
