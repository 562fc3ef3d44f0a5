"""Swap plan assembly.

Turns an allocation into an ordered list of swap steps with aggregate
amounts, and the plan into the batch-swap ``SwapInfo`` consumed by
settlement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from sor.math.precision import ONE, ZERO, high_precision, to_raw
from sor.models.swap_info import SwapInfo, SwapV2
from sor.models.types import SwapType

from .optimizer import Allocation


@dataclass(frozen=True)
class SwapStep:
    """One pool swap of a plan. Amounts are in human token units."""

    pool_id: str
    token_in: str
    token_out: str
    amount_in: Decimal
    amount_out: Decimal
    path_id: str


@dataclass(frozen=True)
class SwapPlan:
    """Executable routing result.

    Steps of the same path are contiguous and in hop order.

    Attributes:
        marginal_price: token_out per token_in at the margin of the split
        market_spot_price: Best zero-amount spot price among the paths used
            (token_in per token_out, fee included)
        return_amount_considering_fees: total_out minus gas cost (exact in)
            or total_in plus gas cost (exact out)
        gas_cost: Gas cost of the plan in the return token
    """

    swap_type: SwapType
    token_in: str
    token_out: str
    decimals_in: int
    decimals_out: int
    steps: tuple[SwapStep, ...] = ()
    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    marginal_price: Decimal = ZERO
    market_spot_price: Decimal = ZERO
    return_amount_considering_fees: Decimal = ZERO
    gas_cost: Decimal = ZERO
    path_ids: tuple[str, ...] = field(default=())

    @property
    def swap_amount(self) -> Decimal:
        return self.total_in if self.swap_type.is_exact_in else self.total_out

    @property
    def return_amount(self) -> Decimal:
        return self.total_out if self.swap_type.is_exact_in else self.total_in

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def steps_for_path(self, path_id: str) -> list[SwapStep]:
        return [s for s in self.steps if s.path_id == path_id]


@high_precision
def assemble_plan(
    allocation: Allocation,
    token_in: str,
    token_out: str,
    decimals_in: int,
    decimals_out: int,
) -> SwapPlan:
    """Build the swap plan for an allocation. Pure; the allocation is not changed."""
    steps = []
    for execution in allocation.executions:
        for hop in execution.hops:
            steps.append(
                SwapStep(
                    pool_id=hop.hop.pool_id,
                    token_in=hop.hop.token_in,
                    token_out=hop.hop.token_out,
                    amount_in=hop.amount_in,
                    amount_out=hop.amount_out,
                    path_id=execution.path_id,
                )
            )

    executions = allocation.executions
    total_in = sum((e.amount_in for e in executions), ZERO)
    total_out = sum((e.amount_out for e in executions), ZERO)

    # The margin is set by the cheapest path that could still take more;
    # when every path is at its limit, by the most expensive one used.
    open_prices = [e.spot_price for e in executions if e.has_spare_capacity]
    if open_prices:
        margin_spot_price = min(open_prices)
    else:
        margin_spot_price = max((e.spot_price for e in executions), default=ZERO)
    marginal_price = ONE / margin_spot_price if margin_spot_price > 0 else ZERO
    market_spot_price = min((e.candidate.spot_price for e in executions), default=ZERO)

    if allocation.swap_type.is_exact_in:
        considering_fees = total_out - allocation.gas_cost
    else:
        considering_fees = total_in + allocation.gas_cost

    return SwapPlan(
        swap_type=allocation.swap_type,
        token_in=token_in,
        token_out=token_out,
        decimals_in=decimals_in,
        decimals_out=decimals_out,
        steps=tuple(steps),
        total_in=total_in,
        total_out=total_out,
        marginal_price=marginal_price,
        market_spot_price=market_spot_price,
        return_amount_considering_fees=considering_fees,
        gas_cost=allocation.gas_cost,
        path_ids=allocation.path_ids,
    )


def to_swap_info(plan: SwapPlan) -> SwapInfo:
    """Batch-swap representation of a plan, amounts as raw integer strings.

    Multi-hop paths are chained: only the step taking the fixed amount
    carries it, the other steps use "0" (the amount produced or required
    by the neighbouring step). Exact in lists each path's steps in hop
    order; exact out lists them last hop first.
    """
    if plan.is_empty:
        return SwapInfo(token_in=plan.token_in, token_out=plan.token_out)

    token_addresses: list[str] = []
    for step in plan.steps:
        for token in (step.token_in, step.token_out):
            if token not in token_addresses:
                token_addresses.append(token)

    swaps: list[SwapV2] = []
    for path_id in plan.path_ids:
        steps = plan.steps_for_path(path_id)
        if plan.swap_type.is_exact_in:
            ordered = steps
            first_amount = to_raw(steps[0].amount_in, plan.decimals_in)
        else:
            ordered = list(reversed(steps))
            first_amount = to_raw(steps[-1].amount_out, plan.decimals_out)
        for index, step in enumerate(ordered):
            swaps.append(
                SwapV2(
                    pool_id=step.pool_id,
                    asset_in_index=token_addresses.index(step.token_in),
                    asset_out_index=token_addresses.index(step.token_out),
                    amount=str(first_amount) if index == 0 else "0",
                )
            )

    if plan.swap_type.is_exact_in:
        swap_amount = to_raw(plan.total_in, plan.decimals_in)
        return_amount = to_raw(plan.total_out, plan.decimals_out)
        considering_fees = to_raw(
            max(plan.return_amount_considering_fees, ZERO), plan.decimals_out
        )
    else:
        swap_amount = to_raw(plan.total_out, plan.decimals_out)
        return_amount = to_raw(plan.total_in, plan.decimals_in, round_up=True)
        considering_fees = to_raw(
            plan.return_amount_considering_fees, plan.decimals_in, round_up=True
        )

    return SwapInfo(
        token_addresses=token_addresses,
        swaps=swaps,
        swap_amount=str(swap_amount),
        return_amount=str(return_amount),
        return_amount_considering_fees=str(considering_fees),
        token_in=plan.token_in,
        token_out=plan.token_out,
        market_sp=str(plan.market_spot_price),
    )


__all__ = ["SwapStep", "SwapPlan", "assemble_plan", "to_swap_info"]
