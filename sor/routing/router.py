"""Route entry points.

``route`` runs one request end to end: snapshot parsing and filtering,
candidate path enumeration, limits and ranking, allocation and plan
assembly. ``SOR`` is a small stateful facade around it that holds the
pool snapshot and the swap cost calculator between requests.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

import structlog

from sor.config import DEFAULT_ROUTE_OPTIONS, DEFAULT_SOR_CONFIG, RouteOptions, SorConfig
from sor.errors import NoPathFound
from sor.fees.calculator import GasCostFn, SwapCostCalculator
from sor.math.precision import bnum, quantize_down
from sor.models.subgraph import SubgraphPool
from sor.models.swap_info import SwapInfo
from sor.models.types import SwapType, normalize_address
from sor.pools.ledger import PoolLedger
from sor.pools.parsing import parse_pools
from sor.pools.types import AnyPool, MetaStablePool, StablePool, WeightedPool

from .limits import PathLimiter
from .optimizer import AllocationOptimizer
from .pathfinding import PoolGraph
from .plan import SwapPlan, assemble_plan, to_swap_info

logger = structlog.get_logger()

_POOL_CLASSES = (WeightedPool, StablePool, MetaStablePool)


def _prepare_pools(
    pools: Iterable[AnyPool | SubgraphPool | dict[str, Any]], options: RouteOptions
) -> list[AnyPool]:
    """Parse raw snapshots and apply the pool type filter."""
    parsed: list[AnyPool] = []
    raw: list[SubgraphPool | dict[str, Any]] = []
    for pool in pools:
        if isinstance(pool, _POOL_CLASSES):
            if options.pool_type_filter.accepts(pool.pool_type) and pool.swap_enabled:
                parsed.append(pool)
        else:
            raw.append(pool)
    if raw:
        parsed.extend(parse_pools(raw, options.pool_type_filter))
    return parsed


def _token_decimals(pools: Sequence[AnyPool], token: str) -> int:
    for pool in pools:
        pool_token = pool.get_token(token)
        if pool_token is not None:
            return pool_token.decimals
    raise NoPathFound(f"No pool holds token {token}")


def route(
    pools: Iterable[AnyPool | SubgraphPool | dict[str, Any]],
    token_in: str,
    token_out: str,
    swap_type: SwapType,
    amount: Decimal | str | int,
    options: RouteOptions = DEFAULT_ROUTE_OPTIONS,
    gas_cost_fn: GasCostFn | None = None,
    config: SorConfig = DEFAULT_SOR_CONFIG,
) -> SwapPlan:
    """Find the best split of a swap across the given pools.

    Args:
        pools: Pool snapshot, as pool dataclasses or subgraph snapshots
        token_in: Token sold
        token_out: Token bought
        swap_type: EXACT_IN fixes ``amount`` of token_in, EXACT_OUT fixes
            ``amount`` of token_out
        amount: Amount in human units of the fixed token
        options: Per-request options
        gas_cost_fn: Prices gas in a token; gas is free when omitted
        config: Optimizer tuning

    Returns:
        SwapPlan for the best allocation found

    Raises:
        NoPathFound: If no path connects the tokens
        AmountExceedsLiquidity: If the amount cannot be filled within max_pools paths
        OptimizationDidNotConverge: If marginal prices could not be equalized
        ValueError: If the amount is not positive
    """
    token_in_norm = normalize_address(token_in)
    token_out_norm = normalize_address(token_out)
    requested = bnum(amount)
    if requested <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
    if token_in_norm == token_out_norm:
        raise NoPathFound(f"token_in and token_out are both {token_in_norm}")

    pool_list = _prepare_pools(pools, options)
    decimals_in = _token_decimals(pool_list, token_in_norm)
    decimals_out = _token_decimals(pool_list, token_out_norm)
    fixed_decimals = decimals_in if swap_type.is_exact_in else decimals_out
    total = quantize_down(requested, fixed_decimals)
    if total <= 0:
        raise ValueError(f"Amount {amount} rounds to zero at {fixed_decimals} decimals")

    ledger = PoolLedger(pool_list)
    graph = PoolGraph(pool_list)
    max_paths = options.max_candidate_paths or config.max_candidate_paths
    paths = graph.find_paths(token_in_norm, token_out_norm, options.max_hops, max_paths, ledger)

    candidates = PathLimiter(ledger).score(paths, swap_type)
    if not candidates:
        raise NoPathFound(f"No usable path from {token_in_norm} to {token_out_norm}")

    # Gas is priced in the token the plan is compared in
    cost_token = token_out_norm if swap_type.is_exact_in else token_in_norm

    def gas_cost(n_paths: int) -> Decimal:
        if gas_cost_fn is None:
            return Decimal(0)
        return gas_cost_fn(cost_token, options.gas_price, options.swap_gas * n_paths)

    optimizer = AllocationOptimizer(config.max_iterations, config.tolerance)
    allocation = optimizer.optimize(
        candidates,
        swap_type,
        total,
        options.max_pools,
        ledger,
        fixed_decimals,
        gas_cost,
    )
    plan = assemble_plan(allocation, token_in_norm, token_out_norm, decimals_in, decimals_out)

    logger.info(
        "route_found",
        token_in=token_in_norm,
        token_out=token_out_norm,
        swap_type=swap_type.value,
        amount=str(total),
        paths=len(plan.path_ids),
        candidates=len(candidates),
        return_amount=str(plan.return_amount),
    )
    return plan


@runtime_checkable
class PoolDataSource(Protocol):
    """Supplies the current pool snapshot (subgraph, chain, file, ...)."""

    def get_pools(self) -> list[SubgraphPool]: ...


class SOR:
    """Smart order router facade.

    Holds the latest pool snapshot and the swap cost calculator, so callers
    can fetch pools once and route many requests against them.

    Usage:
        sor = SOR()
        sor.fetch_pools(snapshot)
        info = sor.get_swaps(token_in, token_out, SwapType.EXACT_IN, "10")
    """

    def __init__(
        self,
        pool_source: PoolDataSource | None = None,
        chain_id: int = 1,
        config: SorConfig = DEFAULT_SOR_CONFIG,
        initial_pools: Iterable[SubgraphPool | dict[str, Any]] | None = None,
    ) -> None:
        self.pool_source = pool_source
        self.config = config
        self.swap_cost_calculator = SwapCostCalculator(chain_id)
        self._pools: list[SubgraphPool] = []
        if initial_pools is not None:
            self.fetch_pools(initial_pools)

    @property
    def chain_id(self) -> int:
        return self.swap_cost_calculator.chain_id

    def get_pools(self) -> list[SubgraphPool]:
        return list(self._pools)

    def fetch_pools(
        self, pools_data: Iterable[SubgraphPool | dict[str, Any]] | None = None
    ) -> bool:
        """Replace the snapshot, from ``pools_data`` or from the pool source.

        Returns:
            True if a snapshot was loaded
        """
        if pools_data is None:
            if self.pool_source is None:
                logger.warning("fetch_pools_no_source")
                return False
            pools_data = self.pool_source.get_pools()

        self._pools = [
            p if isinstance(p, SubgraphPool) else SubgraphPool.model_validate(p)
            for p in pools_data
        ]
        logger.info("pools_fetched", count=len(self._pools), chain_id=self.chain_id)
        return True

    def route(
        self,
        token_in: str,
        token_out: str,
        swap_type: SwapType,
        amount: Decimal | str | int,
        options: RouteOptions = DEFAULT_ROUTE_OPTIONS,
    ) -> SwapPlan:
        """Route against the current snapshot, pricing gas with the cost calculator."""
        return route(
            self._pools,
            token_in,
            token_out,
            swap_type,
            amount,
            options,
            gas_cost_fn=self.swap_cost_calculator,
            config=self.config,
        )

    def get_swaps(
        self,
        token_in: str,
        token_out: str,
        swap_type: SwapType,
        amount: Decimal | str | int,
        options: RouteOptions = DEFAULT_ROUTE_OPTIONS,
    ) -> SwapInfo:
        """Route and return the batch-swap representation of the plan."""
        return to_swap_info(self.route(token_in, token_out, swap_type, amount, options))

    def get_cost_of_swap_in_token(
        self, token: str, gas_price: int, swap_gas: int | None = None
    ) -> Decimal:
        """Gas cost of one path, in units of ``token``."""
        if swap_gas is None:
            return self.swap_cost_calculator.convert_gas_cost_to_token(token, gas_price)
        return self.swap_cost_calculator.convert_gas_cost_to_token(token, gas_price, swap_gas)


__all__ = ["route", "SOR", "PoolDataSource"]
