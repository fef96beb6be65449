"""Pydantic request/response models for the relay HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rwa_swap_relay.domain.entities import (
    ExecutionPlan,
    LiquidityProvider,
    RemoteSession,
    SwapSession,
)
from rwa_swap_relay.domain.node_models import LedgerBalance, WireAmount
from rwa_swap_relay.domain.session_types import SwapPhase, SwapSessionStatus


class ApiModel(BaseModel):
    """Base model for API payloads."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class BuyerFillModel(ApiModel):
    """Buyer share in a create-session request."""

    buyer: str = Field(min_length=1)
    asset_amount: WireAmount = Field(ge=0, alias="assetAmount")
    payment_amount: WireAmount = Field(ge=0, alias="paymentAmount")


class SwapTermsModel(ApiModel):
    """Swap terms shared by the create and execute requests."""

    provider: str = Field(min_length=1)
    buyers: list[BuyerFillModel] = Field(min_length=1)
    token: str = Field(min_length=1)
    payment_asset: str | None = Field(default=None, alias="paymentAsset")
    total_asset_amount: WireAmount = Field(ge=0, alias="totalAssetAmount")
    total_payment_amount: WireAmount = Field(ge=0, alias="totalPaymentAmount")
    provider_fee: WireAmount = Field(default=0, ge=0, alias="providerFee")
    weights: list[int] | None = None


class CreateSwapSessionRequest(SwapTermsModel):
    """Body of `POST /api/sessions/create`."""

    seller: str = Field(min_length=1)


class ExecuteSwapRequest(SwapTermsModel):
    """Body of `POST /api/sessions/execute`; the seller defaults to the relay wallet."""

    seller: str | None = Field(default=None, min_length=1)

    def with_default_seller(self, seller: str) -> CreateSwapSessionRequest:
        terms = self.model_dump(exclude={"seller"})
        return CreateSwapSessionRequest.model_validate({**terms, "seller": self.seller or seller})


class ExecutionPlanResponse(ApiModel):
    """Serialized execution plan."""

    plan_id: str = Field(alias="planId")
    seller: str
    provider: str
    buyers: list[BuyerFillModel]
    token: str
    payment_asset: str = Field(alias="paymentAsset")
    total_asset_amount: WireAmount = Field(alias="totalAssetAmount")
    total_payment_amount: WireAmount = Field(alias="totalPaymentAmount")
    provider_fee: WireAmount = Field(alias="providerFee")
    participants: list[str]
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_plan(cls, plan: ExecutionPlan) -> "ExecutionPlanResponse":
        return cls(
            plan_id=plan.plan_id,
            seller=plan.seller,
            provider=plan.provider,
            buyers=[
                BuyerFillModel(
                    buyer=fill.buyer,
                    asset_amount=fill.asset_amount,
                    payment_amount=fill.payment_amount,
                )
                for fill in plan.buyers
            ],
            token=plan.token,
            payment_asset=plan.payment_asset,
            total_asset_amount=plan.total_asset_amount,
            total_payment_amount=plan.total_payment_amount,
            provider_fee=plan.provider_fee,
            participants=plan.participants,
            created_at=plan.created_at,
        )


class SwapSessionResponse(ApiModel):
    """Serialized swap session record."""

    plan_id: str = Field(alias="planId")
    session_id: str | None = Field(default=None, alias="sessionId")
    status: SwapSessionStatus
    version: int
    error: str | None = None
    failed_phase: SwapPhase | None = Field(default=None, alias="failedPhase")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_session(cls, session: SwapSession) -> "SwapSessionResponse":
        return cls(
            plan_id=session.plan_id,
            session_id=session.session_id,
            status=session.status,
            version=session.current_version,
            error=session.error,
            failed_phase=session.failed_phase,
            updated_at=session.updated_at,
        )


class CreateSwapSessionResponse(ApiModel):
    """Result of `POST /api/sessions/create`."""

    success: bool = True
    plan_id: str = Field(alias="planId")
    session_id: str = Field(alias="sessionId")
    participants: list[str]
    status: SwapSessionStatus


class SwapPhaseResponse(ApiModel):
    """Result of lock/finalize/close."""

    success: bool = True
    plan_id: str = Field(alias="planId")
    session_id: str | None = Field(default=None, alias="sessionId")
    status: SwapSessionStatus
    version: int


class ExecutionPlanDetailResponse(ApiModel):
    """Result of `GET /api/sessions/{planId}`."""

    success: bool = True
    plan: ExecutionPlanResponse
    session: SwapSessionResponse | None = None


class ExecutionPlanListResponse(ApiModel):
    """Result of `GET /api/sessions`."""

    success: bool = True
    plans: list[ExecutionPlanResponse]
    count: int


class RemoteSessionResponse(ApiModel):
    """Cached view of a node-hosted app session."""

    session_id: str = Field(alias="sessionId")
    status: SwapSessionStatus
    participants: list[str]
    protocol: str
    version: int
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_remote(cls, remote: RemoteSession) -> "RemoteSessionResponse":
        return cls(
            session_id=remote.session_id,
            status=remote.status,
            participants=list(remote.participants),
            protocol=remote.protocol,
            version=remote.version,
            created_at=remote.created_at,
        )


class RemoteSessionListResponse(ApiModel):
    """Result of `GET /api/sessions/remote/active`."""

    success: bool = True
    sessions: list[RemoteSessionResponse]
    count: int


class NodeStatusResponse(ApiModel):
    """Connection and authentication state of the node client."""

    success: bool = True
    endpoint: str
    connection: str
    auth: str
    authenticated: bool
    address: str
    session_key: str | None = Field(default=None, alias="sessionKey")
    application: str
    scope: str
    expires_at: int | None = Field(default=None, alias="expiresAt")
    jwt_token: str | None = Field(default=None, alias="jwtToken")


class LedgerBalancesResponse(ApiModel):
    """Result of `GET /api/node/ledger`."""

    success: bool = True
    balances: list[LedgerBalance]


class ProviderRegistrationRequest(ApiModel):
    """Body of `POST /api/providers/register`."""

    address: str = Field(min_length=1)
    collateral: WireAmount = Field(ge=0)
    name: str | None = None


class ProviderModel(ApiModel):
    """Serialized liquidity provider."""

    address: str
    collateral: WireAmount
    name: str
    status: str
    registered_at: datetime = Field(alias="registeredAt")
    total_swaps: int = Field(alias="totalSwaps")
    total_volume: WireAmount = Field(alias="totalVolume")

    @classmethod
    def from_provider(cls, provider: LiquidityProvider) -> "ProviderModel":
        return cls(
            address=provider.address,
            collateral=provider.collateral,
            name=provider.name,
            status=provider.status,
            registered_at=provider.registered_at,
            total_swaps=provider.total_swaps,
            total_volume=provider.total_volume,
        )


class ProviderResponse(ApiModel):
    success: bool = True
    provider: ProviderModel


class ProviderListResponse(ApiModel):
    success: bool = True
    providers: list[ProviderModel]
    count: int


class ErrorResponse(ApiModel):
    """Error body shared by every route."""

    success: bool = False
    error: str


__all__ = [
    "ApiModel",
    "BuyerFillModel",
    "CreateSwapSessionRequest",
    "CreateSwapSessionResponse",
    "ErrorResponse",
    "ExecutionPlanDetailResponse",
    "ExecutionPlanListResponse",
    "ExecuteSwapRequest",
    "ExecutionPlanResponse",
    "LedgerBalancesResponse",
    "NodeStatusResponse",
    "ProviderListResponse",
    "ProviderModel",
    "ProviderRegistrationRequest",
    "ProviderResponse",
    "RemoteSessionListResponse",
    "RemoteSessionResponse",
    "SwapPhaseResponse",
    "SwapSessionResponse",
    "SwapTermsModel",
]
