"""ClearNode RPC envelope codec.

Request  {"req": [id, method, params, timestamp_ms], "sig": ["0x..."]}
Response {"res": [id, method, params, timestamp_ms], "sig": ["0x..."]}

The signature covers the compact JSON encoding of the ``req`` array.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import ValidationError

from rwa_swap_relay.domain.errors import ProtocolError, RemoteRejectionError
from rwa_swap_relay.domain.node_models import NodeModel
from rwa_swap_relay.domain.ports import MessageSigner
from rwa_swap_relay.infrastructure.signing import compact_json

ResultModel = TypeVar("ResultModel", bound=NodeModel)


class RPCMethod(StrEnum):
    """Node methods used by the relay."""

    AUTH_REQUEST = "auth_request"
    AUTH_CHALLENGE = "auth_challenge"
    AUTH_VERIFY = "auth_verify"
    GET_LEDGER_BALANCES = "get_ledger_balances"
    CREATE_APP_SESSION = "create_app_session"
    SUBMIT_APP_STATE = "submit_app_state"
    CLOSE_APP_SESSION = "close_app_session"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class RPCResponse:
    """Decoded response envelope."""

    request_id: int
    method: str
    params: Any
    timestamp: int | None = None


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def _is_request_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def build_request(
    request_id: int | None,
    method: RPCMethod | str,
    params: Any,
    timestamp: int | None = None,
) -> dict[str, Any]:
    """Build an unsigned request frame."""

    return {
        "req": [request_id, str(method), params, now_ms() if timestamp is None else timestamp],
        "sig": [],
    }


def sign_request(frame: dict[str, Any], signer: MessageSigner) -> dict[str, Any]:
    """Return a copy of `frame` carrying the signer's signature over `req`."""

    if not _is_request_id(request_id_of(frame)):
        raise ProtocolError("Cannot sign a request without a numeric id.")
    return {"req": frame["req"], "sig": [signer.sign_payload(frame["req"])]}


def request_id_of(frame: dict[str, Any]) -> int | None:
    """Return `req[0]`, or None when the slot is empty."""

    req = frame.get("req")
    if not isinstance(req, list) or len(req) < 2:
        raise ProtocolError("Request frame must carry a 'req' array.")
    request_id = req[0]
    if request_id is None:
        return None
    if not _is_request_id(request_id):
        raise ProtocolError(f"Request id must be an integer, got {request_id!r}.")
    return request_id


def with_request_id(frame: dict[str, Any], request_id: int) -> dict[str, Any]:
    """Fill the id slot of an unsigned request."""

    if frame.get("sig"):
        raise ProtocolError("Cannot assign an id to an already signed request.")
    req = list(frame["req"])
    req[0] = request_id
    return {**frame, "req": req}


def encode_frame(frame: dict[str, Any]) -> str:
    return compact_json(frame)


def decode_frame(raw: str | bytes) -> dict[str, Any]:
    """Parse one inbound text frame."""

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"Frame is not valid UTF-8: {exc}") from exc
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(frame, dict):
        raise ProtocolError("Frame must be a JSON object.")
    return frame


def parse_response(frame: dict[str, Any]) -> RPCResponse:
    """Validate the `res` envelope shape."""

    res = frame.get("res")
    if not isinstance(res, list) or len(res) < 3:
        raise ProtocolError("Response frame must carry a 'res' array of at least 3 items.")
    request_id, method, params = res[0], res[1], res[2]
    if not _is_request_id(request_id):
        raise ProtocolError(f"Response id must be an integer, got {request_id!r}.")
    if not isinstance(method, str):
        raise ProtocolError(f"Response method must be a string, got {method!r}.")
    timestamp = res[3] if len(res) > 3 and _is_request_id(res[3]) else None
    return RPCResponse(request_id=request_id, method=method, params=params, timestamp=timestamp)


def response_method(frame: dict[str, Any]) -> str | None:
    """Best-effort method tag of an inbound frame."""

    res = frame.get("res")
    if isinstance(res, list) and len(res) > 1 and isinstance(res[1], str):
        return res[1]
    return None


def expect_result(
    response: RPCResponse,
    method: RPCMethod,
    model: type[ResultModel],
) -> ResultModel:
    """Check the method tag of `response` and validate its params with `model`."""

    if response.method == RPCMethod.ERROR:
        raise RemoteRejectionError(_error_message(response.params))
    if response.method != method:
        raise ProtocolError(f"Expected {method}, got {response.method}.")
    try:
        return model.model_validate(response.params)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed {method} payload: {exc}") from exc


def _error_message(params: Any) -> str:
    if isinstance(params, dict):
        error = params.get("error")
        return error if isinstance(error, str) and error else json.dumps(params)
    if isinstance(params, str) and params:
        return params
    return "unknown node error"


__all__ = [
    "RPCMethod",
    "RPCResponse",
    "build_request",
    "decode_frame",
    "encode_frame",
    "expect_result",
    "now_ms",
    "parse_response",
    "request_id_of",
    "response_method",
    "sign_request",
    "with_request_id",
]
