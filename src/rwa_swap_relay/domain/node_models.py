"""Pydantic models for result payloads returned by the ClearNode."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

WireAmount = Annotated[int, PlainSerializer(str, return_type=str)]


class NodeModel(BaseModel):
    """Base model for node result payloads; unknown keys are tolerated."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AuthChallengeResult(NodeModel):
    """Params of an `auth_challenge` response."""

    challenge_message: str = Field(min_length=1)


class AuthVerifyResult(NodeModel):
    """Params of an `auth_verify` response."""

    success: bool
    address: str | None = None
    session_key: str | None = None
    jwt_token: str | None = Field(default=None, alias="jwtToken")


class AppSessionResult(NodeModel):
    """Params of create/submit/close app session responses."""

    app_session_id: str = Field(min_length=1)
    version: int = Field(default=1, ge=0)
    status: str | None = None


class LedgerBalance(NodeModel):
    """One asset balance of a participant's unified ledger."""

    asset: str
    amount: str


class LedgerBalancesResult(NodeModel):
    """Params of a `get_ledger_balances` response."""

    ledger_balances: list[LedgerBalance] = Field(default_factory=list)


__all__ = [
    "AppSessionResult",
    "AuthChallengeResult",
    "AuthVerifyResult",
    "LedgerBalance",
    "LedgerBalancesResult",
    "NodeModel",
    "WireAmount",
]
