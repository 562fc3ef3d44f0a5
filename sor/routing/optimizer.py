"""Allocation optimizer.

Splits the requested amount across up to ``max_pools`` candidate paths.
Paths are added one at a time in rank order. For each path count the split
is found by equalizing marginal spot prices, the split is executed against
a ledger so that pools shared between paths see each other's swaps, and
the result net of gas is compared with the best so far. The search stops
as soon as adding a path no longer improves the net result.

Equalization is a bounded Newton iteration. Each path's spot price is
linearized at the current amounts (price + derivative * delta) and the
linear system "all paths with flow share one price level, paths without
flow are priced above it, paths at their limit below it" is solved
exactly by a water-filling pass over the piecewise-linear breakpoints.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog

from sor.constants import DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE
from sor.errors import AmountExceedsLiquidity, InsufficientLiquidity, OptimizationDidNotConverge
from sor.math.precision import ONE, ZERO, high_precision, quantize_down
from sor.models.types import SwapType
from sor.pools.ledger import PoolLedger
from sor.pools.registry import pricing_for

from .path import Hop, PathCandidate, path_spot_price

logger = structlog.get_logger()

# Gas cost, in the return token, of a plan using n paths
GasCostForPaths = Callable[[int], Decimal]

# Derivatives are floored here so that flat prices still give bounded steps
_MIN_DERIVATIVE = Decimal("1e-36")


@dataclass(frozen=True)
class HopExecution:
    """Amounts swapped through one hop."""

    hop: Hop
    amount_in: Decimal
    amount_out: Decimal


@dataclass(frozen=True)
class PathExecution:
    """One path of an allocation, as executed against the ledger.

    Attributes:
        candidate: The path and its limit
        amount: Amount of the swap's fixed token routed through the path
        amount_in: Path input (equals ``amount`` for exact in)
        amount_out: Path output (equals ``amount`` for exact out)
        hops: Per-hop amounts in path order
        spot_price: Path spot price after swapping ``amount``
    """

    candidate: PathCandidate
    amount: Decimal
    amount_in: Decimal
    amount_out: Decimal
    hops: tuple[HopExecution, ...]
    spot_price: Decimal

    @property
    def path_id(self) -> str:
        return self.candidate.id

    @property
    def has_spare_capacity(self) -> bool:
        return self.amount < self.candidate.limit


@dataclass(frozen=True)
class Allocation:
    """Split of the requested amount across paths.

    ``total_return`` is the output for exact in and the input for exact
    out; ``net_return`` accounts for the gas cost of the paths used.
    """

    swap_type: SwapType
    total: Decimal
    executions: tuple[PathExecution, ...]
    total_return: Decimal
    gas_cost: Decimal
    net_return: Decimal

    @property
    def amounts(self) -> tuple[Decimal, ...]:
        return tuple(e.amount for e in self.executions)

    @property
    def path_ids(self) -> tuple[str, ...]:
        return tuple(e.path_id for e in self.executions)

    def is_better_than(self, other: Allocation | None) -> bool:
        if other is None:
            return True
        if self.swap_type.is_exact_in:
            return self.net_return > other.net_return
        return self.net_return < other.net_return


def _no_gas(n_paths: int) -> Decimal:
    return ZERO


class AllocationOptimizer:
    """Finds the best split of an amount across ranked candidate paths."""

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        tolerance: Decimal = DEFAULT_TOLERANCE,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.max_iterations = max_iterations
        self.tolerance = tolerance

    @high_precision
    def optimize(
        self,
        candidates: Sequence[PathCandidate],
        swap_type: SwapType,
        total: Decimal,
        max_pools: int,
        ledger: PoolLedger,
        decimals: int,
        gas_cost: GasCostForPaths | None = None,
    ) -> Allocation:
        """Best allocation of ``total`` over at most ``max_pools`` of the candidates.

        Args:
            candidates: Usable candidates in rank order
            swap_type: Exact in or exact out
            total: Amount of the fixed token to route
            max_pools: Maximum number of paths in the allocation
            ledger: Pool balances to execute against
            decimals: Decimals of the fixed token (amounts are quantized to them)
            gas_cost: Gas cost in the return token for a given path count

        Raises:
            AmountExceedsLiquidity: If no set of paths can fill ``total``
            OptimizationDidNotConverge: If equalization exceeds max_iterations
        """
        if total <= 0:
            raise ValueError(f"Amount must be positive, got {total}")

        by_limit = sorted(candidates, key=lambda c: (-c.limit, c.id))
        available = sum((c.limit for c in by_limit[:max_pools]), ZERO)
        if available < total:
            raise AmountExceedsLiquidity(total, available)

        cost_cache: dict[int, Decimal] = {}
        cost_fn = gas_cost or _no_gas

        def cost_for(n_paths: int) -> Decimal:
            if n_paths not in cost_cache:
                cost_cache[n_paths] = cost_fn(n_paths)
            return cost_cache[n_paths]

        remaining = list(candidates)
        selected: list[PathCandidate] = []
        best: Allocation | None = None
        best_amounts: list[Decimal] | None = None

        while len(selected) < min(max_pools, len(remaining)):
            remaining_by_limit = [c for c in by_limit if c in remaining]
            candidate = self._next_candidate(
                remaining, selected, remaining_by_limit, total, max_pools
            )
            selected.append(candidate)
            n = len(selected)
            capacity = sum((c.limit for c in selected), ZERO)
            if capacity < total:
                logger.debug("path_set_cannot_fill", n_paths=n, capacity=str(capacity))
                continue

            if best_amounts is not None and best is not None and len(best_amounts) == n - 1:
                initial = best_amounts + [ZERO]
            else:
                initial = [total * c.limit / capacity for c in selected]

            try:
                amounts, _ = self.equalize(selected, initial, swap_type, total, ledger)
                amounts = self.quantize(amounts, selected, total, decimals)
                allocation = self.execute(selected, amounts, swap_type, total, ledger, cost_for)
            except InsufficientLiquidity as e:
                # The newest path cannot carry its share; retry this size without it
                logger.debug("path_dropped", path_id=candidate.id, n_paths=n, error=str(e))
                selected.pop()
                remaining.remove(candidate)
                continue

            logger.debug(
                "allocation_evaluated",
                n_paths=n,
                net_return=str(allocation.net_return),
                gas_cost=str(allocation.gas_cost),
            )
            if not allocation.is_better_than(best):
                break
            best = allocation
            best_amounts = list(amounts)

        if best is None:
            raise AmountExceedsLiquidity(total, available)
        return best

    def _next_candidate(
        self,
        candidates: Sequence[PathCandidate],
        selected: list[PathCandidate],
        by_limit: list[PathCandidate],
        total: Decimal,
        max_pools: int,
    ) -> PathCandidate:
        """Next ranked candidate, unless it would leave the remaining slots unable to fill total.

        In that case the unselected candidate with the largest limit is
        taken instead.
        """
        chosen_ids = {c.id for c in selected}
        ranked = next(c for c in candidates if c.id not in chosen_ids)

        slots_left = max_pools - len(selected) - 1
        others = [c for c in by_limit if c.id not in chosen_ids and c.id != ranked.id]
        reachable = (
            sum((c.limit for c in selected), ZERO)
            + ranked.limit
            + sum((c.limit for c in others[:slots_left]), ZERO)
        )
        if reachable >= total:
            return ranked
        return next(c for c in by_limit if c.id not in chosen_ids)

    @high_precision
    def equalize(
        self,
        candidates: Sequence[PathCandidate],
        amounts: Sequence[Decimal],
        swap_type: SwapType,
        total: Decimal,
        ledger: PoolLedger,
    ) -> tuple[list[Decimal], list[Decimal]]:
        """Equalize marginal spot prices, starting from ``amounts``.

        Returns:
            (amounts, spot prices at those amounts)

        Raises:
            OptimizationDidNotConverge: If the prices are still apart after
                max_iterations Newton steps
        """
        limits = [c.limit for c in candidates]
        current = list(amounts)
        spread = ZERO

        for iteration in range(self.max_iterations + 1):
            prices: list[Decimal] = []
            derivatives: list[Decimal] = []
            for candidate, amount in zip(candidates, current, strict=True):
                price, derivative = path_spot_price(candidate.path, ledger, swap_type, amount)
                prices.append(price)
                derivatives.append(max(derivative, _MIN_DERIVATIVE))

            spread = price_spread(current, limits, prices)
            if spread <= self.tolerance:
                logger.debug("equalization_converged", iterations=iteration, paths=len(current))
                return current, prices
            if iteration == self.max_iterations:
                break
            current = water_fill(current, prices, derivatives, limits, total)

        raise OptimizationDidNotConverge(self.max_iterations, spread)

    @high_precision
    def quantize(
        self,
        amounts: Sequence[Decimal],
        candidates: Sequence[PathCandidate],
        total: Decimal,
        decimals: int,
    ) -> list[Decimal]:
        """Round amounts down to token decimals and hand out the residual.

        The residual goes to the paths with the most spare capacity first,
        so the amounts sum exactly to ``total`` without exceeding any limit.
        """
        quantized = [quantize_down(amount, decimals) for amount in amounts]
        residual = total - sum(quantized, ZERO)
        by_spare = sorted(
            range(len(quantized)),
            key=lambda i: (-(candidates[i].limit - quantized[i]), candidates[i].id),
        )
        for i in by_spare:
            if residual <= 0:
                break
            share = min(residual, candidates[i].limit - quantized[i])
            quantized[i] += share
            residual -= share
        return quantized

    def execute(
        self,
        candidates: Sequence[PathCandidate],
        amounts: Sequence[Decimal],
        swap_type: SwapType,
        total: Decimal,
        ledger: PoolLedger,
        cost_for: GasCostForPaths,
    ) -> Allocation:
        """Run every path in order against the ledger.

        Pools shared between paths see the balance updates of the paths
        executed before them, and each path's spot price is taken on the
        balances it actually swaps against. Paths with a zero amount are
        left out.

        Raises:
            InsufficientLiquidity: If a hop cannot take its amount
        """
        executions = []
        for candidate, amount in zip(candidates, amounts, strict=True):
            if amount <= 0:
                continue
            price, _ = path_spot_price(
                candidate.path, ledger, swap_type, amount, with_derivative=False
            )
            execution, ledger = execute_path(candidate, amount, price, swap_type, ledger)
            executions.append(execution)

        if swap_type.is_exact_in:
            total_return = sum((e.amount_out for e in executions), ZERO)
        else:
            total_return = sum((e.amount_in for e in executions), ZERO)
        gas = cost_for(len(executions))
        net = total_return - gas if swap_type.is_exact_in else total_return + gas

        return Allocation(
            swap_type=swap_type,
            total=total,
            executions=tuple(executions),
            total_return=total_return,
            gas_cost=gas,
            net_return=net,
        )


def execute_path(
    candidate: PathCandidate,
    amount: Decimal,
    spot_price: Decimal,
    swap_type: SwapType,
    ledger: PoolLedger,
) -> tuple[PathExecution, PoolLedger]:
    """Swap ``amount`` through one path, returning the execution and the updated ledger."""
    hops = candidate.path.hops
    executed: list[HopExecution] = []

    if swap_type.is_exact_in:
        hop_amount = amount
        for hop in hops:
            pool = ledger[hop.pool_id]
            pricing = pricing_for(pool)
            pair = pricing.pair_view(pool, hop.token_in, hop.token_out)
            amount_out = pricing.exact_out_given_in(pair, hop_amount)
            if amount_out <= 0:
                raise InsufficientLiquidity(f"Hop through {hop.pool_id} returns nothing")
            ledger = ledger.with_swap(
                hop.pool_id, hop.token_in, hop_amount, hop.token_out, amount_out
            )
            executed.append(HopExecution(hop=hop, amount_in=hop_amount, amount_out=amount_out))
            hop_amount = amount_out
        amount_in, amount_out = amount, hop_amount
    else:
        hop_amount = amount
        for hop in reversed(hops):
            pool = ledger[hop.pool_id]
            pricing = pricing_for(pool)
            pair = pricing.pair_view(pool, hop.token_in, hop.token_out)
            amount_in = pricing.exact_in_given_out(pair, hop_amount)
            ledger = ledger.with_swap(
                hop.pool_id, hop.token_in, amount_in, hop.token_out, hop_amount
            )
            executed.append(HopExecution(hop=hop, amount_in=amount_in, amount_out=hop_amount))
            hop_amount = amount_in
        executed.reverse()
        amount_in, amount_out = hop_amount, amount

    execution = PathExecution(
        candidate=candidate,
        amount=amount,
        amount_in=amount_in,
        amount_out=amount_out,
        hops=tuple(executed),
        spot_price=spot_price,
    )
    return execution, ledger


@high_precision
def price_spread(
    amounts: Sequence[Decimal], limits: Sequence[Decimal], prices: Sequence[Decimal]
) -> Decimal:
    """Largest relative gap by which a path with flow is priced above a path with room.

    Zero means the allocation is optimal for these prices: every path
    carrying flow is at least as cheap as every other path that could
    still take more.
    """
    spread = ZERO
    open_paths = [j for j in range(len(amounts)) if amounts[j] < limits[j]]
    for i, amount in enumerate(amounts):
        if amount <= 0:
            continue
        alternatives = [prices[j] for j in open_paths if j != i]
        if not alternatives:
            continue
        spread = max(spread, prices[i] / min(alternatives) - ONE)
    return spread


@high_precision
def water_fill(
    amounts: Sequence[Decimal],
    prices: Sequence[Decimal],
    derivatives: Sequence[Decimal],
    limits: Sequence[Decimal],
    total: Decimal,
) -> list[Decimal]:
    """Solve the linearized allocation exactly.

    With each path linearized as ``price_i + derivative_i * (x - amount_i)``,
    find the level ``p`` such that ``x_i(p) = clamp(amount_i + (p - price_i)
    / derivative_i, 0, limit_i)`` sums to ``total``. The sum is piecewise
    linear in ``p`` with breakpoints where a path hits 0 or its limit, so
    the level is found by interpolating inside the right segment.

    Raises:
        ValueError: If the limits sum below ``total``
    """

    def allocation_at(level: Decimal) -> list[Decimal]:
        return [
            min(max(a + (level - sp) / d, ZERO), limit)
            for a, sp, d, limit in zip(amounts, prices, derivatives, limits, strict=True)
        ]

    breakpoints = sorted(
        {sp - d * a for a, sp, d in zip(amounts, prices, derivatives, strict=True)}
        | {
            sp + d * (limit - a)
            for a, sp, d, limit in zip(amounts, prices, derivatives, limits, strict=True)
        }
    )

    lower = breakpoints[0]
    lower_sum = sum(allocation_at(lower), ZERO)
    for upper in breakpoints[1:]:
        upper_sum = sum(allocation_at(upper), ZERO)
        if upper_sum >= total:
            if upper_sum == lower_sum:
                level = upper
            else:
                level = lower + (total - lower_sum) * (upper - lower) / (upper_sum - lower_sum)
            return _fix_sum(allocation_at(level), limits, total)
        lower, lower_sum = upper, upper_sum

    raise ValueError(f"Limits {sum(limits, ZERO)} cannot fill {total}")


def _fix_sum(allocation: list[Decimal], limits: Sequence[Decimal], total: Decimal) -> list[Decimal]:
    """Absorb the last-digit rounding of the level into paths with room."""
    diff = total - sum(allocation, ZERO)
    if diff == 0:
        return allocation
    order = sorted(range(len(allocation)), key=lambda i: -(limits[i] - allocation[i]))
    if diff < 0:
        order = sorted(range(len(allocation)), key=lambda i: -allocation[i])
    for i in order:
        if diff > 0:
            step = min(diff, limits[i] - allocation[i])
        else:
            step = max(diff, -allocation[i])
        allocation[i] += step
        diff -= step
        if diff == 0:
            break
    return allocation


__all__ = [
    "AllocationOptimizer",
    "Allocation",
    "PathExecution",
    "HopExecution",
    "GasCostForPaths",
    "execute_path",
    "price_spread",
    "water_fill",
]
