from __future__ import annotations

import json

import pytest
from eth_account import Account

from conftest import TEST_PRIVATE_KEY, node_response
from rwa_swap_relay.domain.errors import ProtocolError, RemoteRejectionError
from rwa_swap_relay.domain.node_models import AppSessionResult, AuthChallengeResult
from rwa_swap_relay.infrastructure.clearnode.rpc import (
    RPCMethod,
    build_request,
    decode_frame,
    encode_frame,
    expect_result,
    parse_response,
    request_id_of,
    sign_request,
    with_request_id,
)
from rwa_swap_relay.infrastructure.signing import EthereumSigner, compact_json


def test_build_request_uses_positional_envelope() -> None:
    frame = build_request(42, RPCMethod.GET_LEDGER_BALANCES, {"participant": "0xabc"}, 1000)

    assert frame == {
        "req": [42, "get_ledger_balances", {"participant": "0xabc"}, 1000],
        "sig": [],
    }
    assert encode_frame(frame) == (
        '{"req":[42,"get_ledger_balances",{"participant":"0xabc"},1000],"sig":[]}'
    )


def test_sign_request_signs_compact_req_array() -> None:
    signer = EthereumSigner.from_private_key(TEST_PRIVATE_KEY)
    frame = build_request(1, RPCMethod.CREATE_APP_SESSION, {"a": 1}, 5)

    signed = sign_request(frame, signer)

    assert signed["req"] == frame["req"]
    assert signed["sig"] == [signer.sign_payload(frame["req"])]
    assert signed["sig"][0].startswith("0x")
    assert len(signed["sig"][0]) == 132


def test_sign_request_requires_request_id() -> None:
    signer = EthereumSigner.from_private_key(TEST_PRIVATE_KEY)

    with pytest.raises(ProtocolError):
        sign_request(build_request(None, RPCMethod.CREATE_APP_SESSION, {}), signer)


def test_with_request_id_refuses_signed_frames() -> None:
    assert request_id_of(with_request_id(build_request(None, "ping", {}), 9)) == 9

    with pytest.raises(ProtocolError):
        with_request_id({"req": [None, "ping", {}, 1], "sig": ["0xsig"]}, 9)


def test_request_id_of_rejects_non_integer_ids() -> None:
    with pytest.raises(ProtocolError):
        request_id_of({"req": ["7", "ping", {}, 1]})


def test_decode_frame_rejects_non_objects() -> None:
    with pytest.raises(ProtocolError):
        decode_frame("[1, 2, 3]")
    with pytest.raises(ProtocolError):
        decode_frame(b"{broken")


def test_decode_frame_rejects_invalid_utf8() -> None:
    raw = b'{"res":[1,"ping",{"note":"\xff\xfe"},1]}'

    with pytest.raises(ProtocolError, match="UTF-8"):
        decode_frame(raw)
    assert decode_frame('{"res":[1,"ping",{"note":"ok"},1]}'.encode())["res"][0] == 1


def test_parse_response_validates_envelope() -> None:
    response = parse_response(node_response(5, "auth_challenge", {"challenge_message": "c"}))

    assert response.request_id == 5
    assert response.method == "auth_challenge"
    assert response.timestamp == 1_700_000_000_000

    with pytest.raises(ProtocolError):
        parse_response({"res": ["5", "auth_challenge", {}]})
    with pytest.raises(ProtocolError):
        parse_response({"res": [5]})


def test_expect_result_raises_remote_rejection_for_error_method() -> None:
    response = parse_response(node_response(5, "error", {"error": "insufficient funds"}))

    with pytest.raises(RemoteRejectionError, match="insufficient funds"):
        expect_result(response, RPCMethod.CREATE_APP_SESSION, AppSessionResult)


def test_expect_result_rejects_wrong_method_and_bad_payload() -> None:
    wrong_method = parse_response(node_response(5, "auth_verify", {"success": True}))
    with pytest.raises(ProtocolError):
        expect_result(wrong_method, RPCMethod.AUTH_CHALLENGE, AuthChallengeResult)

    missing_challenge = parse_response(node_response(5, "auth_challenge", {}))
    with pytest.raises(ProtocolError):
        expect_result(missing_challenge, RPCMethod.AUTH_CHALLENGE, AuthChallengeResult)


def test_app_session_result_defaults_version_to_one() -> None:
    response = parse_response(
        node_response(5, "create_app_session", {"app_session_id": "0xs", "status": "open"})
    )

    assert expect_result(response, RPCMethod.CREATE_APP_SESSION, AppSessionResult).version == 1


def test_signer_address_matches_key() -> None:
    signer = EthereumSigner.from_private_key(TEST_PRIVATE_KEY)

    assert signer.address == Account.from_key(TEST_PRIVATE_KEY).address
    assert TEST_PRIVATE_KEY not in repr(signer)


def test_generated_session_keys_are_distinct() -> None:
    assert EthereumSigner.generate().address != EthereumSigner.generate().address


def test_compact_json_has_no_whitespace() -> None:
    payload = [1, "m", {"b": [1, 2], "a": "x"}, 2]

    assert compact_json(payload) == '[1,"m",{"b":[1,2],"a":"x"},2]'
    assert json.loads(compact_json(payload)) == payload
