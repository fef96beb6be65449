"""Domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from rwa_swap_relay.domain.session_types import SwapPhase, SwapSessionStatus


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True, frozen=True)
class BuyerFill:
    """One buyer's share of a swap: asset received against payment locked."""

    buyer: str
    asset_amount: int
    payment_amount: int


@dataclass(slots=True, frozen=True)
class ExecutionPlan:
    """Immutable description of one multi-party swap."""

    plan_id: str
    seller: str
    provider: str
    buyers: tuple[BuyerFill, ...]
    token: str
    payment_asset: str
    total_asset_amount: int
    total_payment_amount: int
    provider_fee: int
    weights: tuple[int, ...] | None = None
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def participants(self) -> list[str]:
        """Session participants in signing order: seller, provider, then buyers."""

        return [self.seller, self.provider, *(fill.buyer for fill in self.buyers)]


@dataclass(slots=True, frozen=True)
class Allocation:
    """Amount of one asset assigned to one participant at a session version."""

    participant: str
    asset: str
    amount: int

    def to_wire(self) -> dict[str, str]:
        """Serialize with the amount as a decimal string."""

        return {"participant": self.participant, "asset": self.asset, "amount": str(self.amount)}


@dataclass(slots=True, frozen=True)
class AppSessionDefinition:
    """Protocol metadata sent when creating an app session."""

    protocol: str
    participants: tuple[str, ...]
    weights: tuple[int, ...]
    quorum: int
    challenge: int = 0
    nonce: int = 0

    def to_wire(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "participants": list(self.participants),
            "weights": list(self.weights),
            "quorum": self.quorum,
            "challenge": self.challenge,
            "nonce": self.nonce,
        }


@dataclass(slots=True)
class RemoteSession:
    """Local mirror of an app session hosted by the node."""

    session_id: str
    participants: list[str]
    version: int
    status: SwapSessionStatus
    protocol: str
    allocations: list[Allocation] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(slots=True)
class SwapSession:
    """Mutable lifecycle record of the remote session backing one plan."""

    plan_id: str
    session_id: str | None = None
    status: SwapSessionStatus = SwapSessionStatus.PENDING
    current_version: int = 0
    error: str | None = None
    failed_phase: SwapPhase | None = None
    updated_at: datetime = field(default_factory=_utc_now)

    def mark(self, status: SwapSessionStatus) -> None:
        self.status = status
        self.updated_at = _utc_now()
        if status is not SwapSessionStatus.FAILED:
            self.error = None
            self.failed_phase = None

    def mark_failed(self, phase: SwapPhase | None, error: BaseException) -> None:
        self.status = SwapSessionStatus.FAILED
        self.error = str(error) or type(error).__name__
        self.failed_phase = phase
        self.updated_at = _utc_now()


@dataclass(slots=True)
class LiquidityProvider:
    """Registered liquidity provider."""

    address: str
    collateral: int
    name: str
    status: str = "active"
    registered_at: datetime = field(default_factory=_utc_now)
    total_swaps: int = 0
    total_volume: int = 0


__all__ = [
    "Allocation",
    "AppSessionDefinition",
    "BuyerFill",
    "ExecutionPlan",
    "LiquidityProvider",
    "RemoteSession",
    "SwapSession",
]
