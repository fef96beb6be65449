from __future__ import annotations

import asyncio

import pytest
from eth_account import Account
from pydantic import ValidationError

from conftest import TEST_NODE_URL, TEST_PRIVATE_KEY, FakeNodeConnection
from rwa_swap_relay.bootstrap import build_runtime
from rwa_swap_relay.config import Settings
from rwa_swap_relay.domain.errors import NodeConnectionError
from rwa_swap_relay.domain.session_types import AuthState
from rwa_swap_relay.infrastructure.repositories import InMemoryExecutionPlanRepository


def test_build_runtime_wires_main_wallet_and_in_memory_store() -> None:
    runtime = build_runtime(Settings(main_private_key=TEST_PRIVATE_KEY))

    assert runtime.node_client.auth.main_address == Account.from_key(TEST_PRIVATE_KEY).address
    assert runtime.node_client.correlator.url == "wss://clearnet-sandbox.yellow.com/ws"
    assert isinstance(runtime.swap_service._repository, InMemoryExecutionPlanRepository)
    assert runtime.swap_service._gateway is runtime.node_client


def test_build_runtime_requires_private_key() -> None:
    with pytest.raises(ValueError, match="MAIN_PRIVATE_KEY"):
        build_runtime(Settings(main_private_key=None))


def test_build_runtime_rejects_invalid_private_key() -> None:
    with pytest.raises(ValueError, match="not a valid private key"):
        build_runtime(Settings(main_private_key="0x1234"))


def test_runtime_start_fails_when_node_is_unreachable() -> None:
    async def refuse(url: str, timeout_seconds: float) -> FakeNodeConnection:
        raise NodeConnectionError(f"cannot reach {url}")

    runtime = build_runtime(
        Settings(main_private_key=TEST_PRIVATE_KEY, clearnode_ws_url=TEST_NODE_URL),
        connector=refuse,
    )

    with pytest.raises(NodeConnectionError):
        asyncio.run(runtime.start())
    assert runtime.node_client.auth.state is AuthState.UNAUTHENTICATED


def test_settings_parse_comma_separated_background_methods() -> None:
    settings = Settings(background_methods="bu, assets,cu,channels")

    assert settings.background_methods == ["bu", "assets", "cu", "channels"]


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RWA_SWAP_CLEARNODE_WS_URL", TEST_NODE_URL)
    monkeypatch.setenv("RWA_SWAP_ALLOWANCE_AMOUNT", "123456789012345678901234567890")
    monkeypatch.setenv("RWA_SWAP_MAIN_PRIVATE_KEY", TEST_PRIVATE_KEY)

    settings = Settings()

    assert settings.clearnode_ws_url == TEST_NODE_URL
    assert settings.allowance_amount == 123456789012345678901234567890
    assert settings.main_private_key is not None
    assert settings.main_private_key.get_secret_value() == TEST_PRIVATE_KEY
    assert TEST_PRIVATE_KEY not in repr(settings)


@pytest.mark.parametrize(
    "overrides",
    [
        {"clearnode_ws_url": ""},
        {"clearnode_ws_url": "https://clearnode.test"},
        {"request_timeout_seconds": 0},
        {"connect_timeout_seconds": -1},
        {"session_expiry_seconds": 0},
        {"allowance_amount": -1},
        {"application_name": " "},
    ],
)
def test_settings_reject_unusable_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_settings_read_comma_separated_background_methods_from_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("RWA_SWAP_BACKGROUND_METHODS", "bu,assets")

    assert Settings().background_methods == ["bu", "assets"]
