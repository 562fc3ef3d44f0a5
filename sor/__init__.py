"""Smart order router for AMM liquidity pools.

Splits a token swap across weighted, stable and meta-stable pools to get
the most output for a fixed input, or the least input for a fixed output.
"""

from sor.config import DEFAULT_SOR_CONFIG, RouteOptions, SorConfig
from sor.errors import (
    AmountExceedsLiquidity,
    InsufficientLiquidity,
    NoPathFound,
    OptimizationDidNotConverge,
    RoutingError,
)
from sor.fees import GasCostFn, SwapCostCalculator
from sor.math import bnum, scale
from sor.models import PoolFilter, PoolType, SubgraphPool, SwapInfo, SwapType
from sor.pools import (
    stable_bpt_for_tokens_zero_price_impact,
    weighted_bpt_for_tokens_zero_price_impact,
)
from sor.routing import SOR, PoolDataSource, SwapPlan, SwapStep, route

__version__ = "0.1.0"

__all__ = [
    "SOR",
    "route",
    "RouteOptions",
    "SorConfig",
    "DEFAULT_SOR_CONFIG",
    "SwapType",
    "PoolType",
    "PoolFilter",
    "SubgraphPool",
    "SwapPlan",
    "SwapStep",
    "SwapInfo",
    "PoolDataSource",
    "GasCostFn",
    "SwapCostCalculator",
    "RoutingError",
    "InsufficientLiquidity",
    "AmountExceedsLiquidity",
    "OptimizationDidNotConverge",
    "NoPathFound",
    "bnum",
    "scale",
    "weighted_bpt_for_tokens_zero_price_impact",
    "stable_bpt_for_tokens_zero_price_impact",
]
