"""Allocation algebra for swap sessions.

Allocations are always derived from an :class:`ExecutionPlan`; callers never
supply them directly. Buyers fund both the seller and the provider fee, so
the payment asset locked by buyers equals the seller's proceeds plus the fee,
and every phase carries the same per-asset totals.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from rwa_swap_relay.domain.entities import Allocation, ExecutionPlan
from rwa_swap_relay.domain.errors import (
    AllocationConservationError,
    ExecutionPlanValidationError,
)


def validate_plan(plan: ExecutionPlan) -> None:
    """Reject plans whose totals cannot be conserved across phases."""

    if not plan.buyers:
        raise ExecutionPlanValidationError("At least one buyer is required.")
    if plan.token == plan.payment_asset:
        raise ExecutionPlanValidationError("Swap token and payment asset must differ.")

    participants = plan.participants
    if len(set(participants)) != len(participants):
        raise ExecutionPlanValidationError(
            "Seller, provider, and buyers must be distinct participants."
        )

    amounts = [plan.total_asset_amount, plan.total_payment_amount, plan.provider_fee]
    for fill in plan.buyers:
        amounts.extend((fill.asset_amount, fill.payment_amount))
    if any(amount < 0 for amount in amounts):
        raise ExecutionPlanValidationError("Amounts must be non-negative integers.")

    asset_sum = sum(fill.asset_amount for fill in plan.buyers)
    if asset_sum != plan.total_asset_amount:
        raise ExecutionPlanValidationError(
            f"Buyer asset amounts sum to {asset_sum}, expected totalAssetAmount "
            f"{plan.total_asset_amount}."
        )

    payment_sum = sum(fill.payment_amount for fill in plan.buyers)
    expected_payment = plan.total_payment_amount + plan.provider_fee
    if payment_sum != expected_payment:
        raise ExecutionPlanValidationError(
            f"Buyer payment amounts sum to {payment_sum}, expected totalPaymentAmount "
            f"plus providerFee ({expected_payment})."
        )

    if plan.weights is not None:
        if len(plan.weights) != len(participants):
            raise ExecutionPlanValidationError(
                f"Expected {len(participants)} weights, got {len(plan.weights)}."
            )
        if any(weight <= 0 for weight in plan.weights):
            raise ExecutionPlanValidationError("Weights must be positive integers.")


def build_lock_allocations(plan: ExecutionPlan) -> list[Allocation]:
    """Allocations while funds are locked: seller holds the asset, buyers their payment."""

    allocations = [
        Allocation(plan.seller, plan.token, plan.total_asset_amount),
        Allocation(plan.seller, plan.payment_asset, 0),
        Allocation(plan.provider, plan.token, 0),
        Allocation(plan.provider, plan.payment_asset, 0),
    ]
    for fill in plan.buyers:
        allocations.append(Allocation(fill.buyer, plan.token, 0))
        allocations.append(Allocation(fill.buyer, plan.payment_asset, fill.payment_amount))
    return allocations


def build_final_allocations(plan: ExecutionPlan) -> list[Allocation]:
    """Net settlement: seller paid, provider keeps its fee, buyers hold the asset."""

    allocations = [
        Allocation(plan.seller, plan.token, 0),
        Allocation(plan.seller, plan.payment_asset, plan.total_payment_amount),
        Allocation(plan.provider, plan.token, 0),
        Allocation(plan.provider, plan.payment_asset, plan.provider_fee),
    ]
    for fill in plan.buyers:
        allocations.append(Allocation(fill.buyer, plan.token, fill.asset_amount))
        allocations.append(Allocation(fill.buyer, plan.payment_asset, 0))
    return allocations


def totals_by_asset(allocations: Iterable[Allocation]) -> dict[str, int]:
    """Sum allocation amounts per asset."""

    totals: dict[str, int] = defaultdict(int)
    for allocation in allocations:
        totals[allocation.asset] += allocation.amount
    return dict(totals)


def assert_conserved(reference: Iterable[Allocation], candidate: Iterable[Allocation]) -> None:
    """Raise when ``candidate`` changes any per-asset total of ``reference``."""

    expected = totals_by_asset(reference)
    actual = totals_by_asset(candidate)
    if expected != actual:
        raise AllocationConservationError(
            f"Allocation totals changed from {expected} to {actual}."
        )


def equal_weights(participant_count: int) -> tuple[int, ...]:
    return (1,) * participant_count


__all__ = [
    "assert_conserved",
    "build_final_allocations",
    "build_lock_allocations",
    "equal_weights",
    "totals_by_asset",
    "validate_plan",
]
