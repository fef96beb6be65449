from __future__ import annotations

from collections.abc import Iterator

import pytest
from eth_account import Account
from fastapi.testclient import TestClient

from conftest import PROVIDER, TEST_PRIVATE_KEY, FakeClearNode, swap_request_payload
from rwa_swap_relay.api.dependencies import get_runtime
from rwa_swap_relay.bootstrap import SwapRelayRuntime
from rwa_swap_relay.main import app


@pytest.fixture
def client(runtime: SwapRelayRuntime) -> Iterator[TestClient]:
    app.dependency_overrides[get_runtime] = lambda: runtime
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(client: TestClient) -> TestClient:
    response = client.post("/api/node/auth")
    assert response.status_code == 200
    return client


def _assert_error(response_json: dict[str, object]) -> None:
    assert response_json["success"] is False
    assert isinstance(response_json["error"], str) and response_json["error"]


def test_healthz(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_node_state(client: TestClient) -> None:
    before = client.get("/health").json()
    assert before["status"] == "degraded"
    assert before["node"]["authenticated"] is False

    client.post("/api/node/auth")
    after = client.get("/health").json()

    assert after["status"] == "ok"
    assert after["node"]["connection"] == "open"
    assert after["node"]["sessionKey"] is not None
    assert after["node"]["jwtToken"].endswith("...")


def test_create_before_authentication_returns_503(client: TestClient) -> None:
    response = client.post("/api/sessions/create", json=swap_request_payload())

    assert response.status_code == 503
    _assert_error(response.json())
    assert client.get("/api/sessions").json()["count"] == 0


def test_swap_lifecycle_over_http(authenticated_client: TestClient) -> None:
    client = authenticated_client

    created = client.post("/api/sessions/create", json=swap_request_payload())
    assert created.status_code == 200
    body = created.json()
    assert body["success"] is True
    assert body["status"] == "created"
    assert body["sessionId"] == "0xsession0001"
    assert len(body["participants"]) == 5
    plan_id = body["planId"]

    detail = client.get(f"/api/sessions/{plan_id}").json()
    assert detail["plan"]["planId"] == plan_id
    assert detail["plan"]["totalAssetAmount"] == "100"
    assert detail["plan"]["buyers"][1]["paymentAmount"] == "40"
    assert detail["session"]["version"] == 1

    assert client.get("/api/sessions/remote/active").json()["count"] == 1

    for phase, status, version in (
        ("lock", "locked", 2),
        ("finalize", "finalized", 3),
        ("close", "closed", 3),
    ):
        response = client.post(f"/api/sessions/{plan_id}/{phase}")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "planId": plan_id,
            "sessionId": "0xsession0001",
            "status": status,
            "version": version,
        }

    listing = client.get("/api/sessions").json()
    assert listing["count"] == 1
    assert listing["plans"][0]["planId"] == plan_id
    assert client.get("/api/sessions/remote/active").json()["count"] == 0


def test_execute_runs_whole_swap_and_authenticates_on_demand(client: TestClient) -> None:
    payload = swap_request_payload()
    payload.pop("seller")

    response = client.post("/api/sessions/execute", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "closed"
    assert body["sessionId"] == "0xsession0001"
    assert body["version"] == 3

    assert client.get("/api/node/status").json()["authenticated"] is True
    plan = client.get(f"/api/sessions/{body['planId']}").json()["plan"]
    assert plan["seller"] == Account.from_key(TEST_PRIVATE_KEY).address
    assert client.get("/api/sessions/remote/active").json()["count"] == 0


def test_execute_failure_leaves_failed_phase_visible(
    client: TestClient,
    fake_node: FakeClearNode,
) -> None:
    fake_node.rejections["submit_app_state"] = "quorum not reached"

    response = client.post("/api/sessions/execute", json=swap_request_payload())

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "quorum not reached"}
    [plan] = client.get("/api/sessions").json()["plans"]
    assert plan["seller"] == swap_request_payload()["seller"]
    session = client.get(f"/api/sessions/{plan['planId']}").json()["session"]
    assert session["status"] == "failed"
    assert session["failedPhase"] == "lock"
    assert session["version"] == 1


def test_unknown_plan_returns_404(authenticated_client: TestClient) -> None:
    for response in (
        authenticated_client.get("/api/sessions/exec_missing"),
        authenticated_client.post("/api/sessions/exec_missing/lock"),
    ):
        assert response.status_code == 404
        _assert_error(response.json())


def test_malformed_body_returns_400(authenticated_client: TestClient) -> None:
    payload = swap_request_payload()
    payload.pop("seller")

    response = authenticated_client.post("/api/sessions/create", json=payload)

    assert response.status_code == 400
    body = response.json()
    _assert_error(body)
    assert "seller" in body["error"]


def test_inconsistent_plan_returns_400(authenticated_client: TestClient) -> None:
    response = authenticated_client.post(
        "/api/sessions/create",
        json=swap_request_payload(totalAssetAmount="101"),
    )

    assert response.status_code == 400
    _assert_error(response.json())


def test_out_of_order_phase_returns_400(authenticated_client: TestClient) -> None:
    plan_id = authenticated_client.post(
        "/api/sessions/create", json=swap_request_payload()
    ).json()["planId"]

    response = authenticated_client.post(f"/api/sessions/{plan_id}/close")

    assert response.status_code == 400
    _assert_error(response.json())


def test_remote_rejection_returns_500_and_rolls_back(
    authenticated_client: TestClient,
    fake_node: FakeClearNode,
) -> None:
    fake_node.rejections["create_app_session"] = "insufficient balance"

    response = authenticated_client.post("/api/sessions/create", json=swap_request_payload())

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "insufficient balance"}
    assert authenticated_client.get("/api/sessions").json()["count"] == 0


def test_failed_phase_is_visible_in_session_detail(
    authenticated_client: TestClient,
    fake_node: FakeClearNode,
) -> None:
    plan_id = authenticated_client.post(
        "/api/sessions/create", json=swap_request_payload()
    ).json()["planId"]
    fake_node.rejections["submit_app_state"] = "stale state"

    response = authenticated_client.post(f"/api/sessions/{plan_id}/lock")

    assert response.status_code == 500
    session = authenticated_client.get(f"/api/sessions/{plan_id}").json()["session"]
    assert session["status"] == "failed"
    assert session["failedPhase"] == "lock"
    assert session["error"] == "stale state"


def test_ledger_balances(authenticated_client: TestClient) -> None:
    response = authenticated_client.get("/api/node/ledger")

    assert response.status_code == 200
    assert response.json()["balances"] == [{"asset": "usdc", "amount": "1500"}]


def test_ledger_requires_authentication(client: TestClient) -> None:
    response = client.get("/api/node/ledger")

    assert response.status_code == 503
    _assert_error(response.json())


def test_reset_session_key(authenticated_client: TestClient) -> None:
    response = authenticated_client.post("/api/node/reset-session-key")

    assert response.status_code == 200
    assert response.json()["authenticated"] is False
    assert response.json()["sessionKey"] is None
    assert authenticated_client.get("/api/node/ledger").status_code == 503


def test_provider_registry(client: TestClient) -> None:
    registered = client.post(
        "/api/providers/register",
        json={"address": PROVIDER, "collateral": "5000"},
    )
    assert registered.status_code == 200
    provider = registered.json()["provider"]
    assert provider["name"] == f"Provider {PROVIDER[:6]}"
    assert provider["collateral"] == "5000"
    assert provider["totalSwaps"] == 0

    listing = client.get("/api/providers").json()
    assert listing["count"] == 1

    assert client.get(f"/api/providers/{PROVIDER}").status_code == 200
    missing = client.get("/api/providers/0xunknown")
    assert missing.status_code == 404
    _assert_error(missing.json())


def test_unknown_route_uses_error_body(client: TestClient) -> None:
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    _assert_error(response.json())
