"""Pool snapshots, pricing models and per-request ledgers."""

from .base import PoolPricing
from .errors import (
    InvalidFeeError,
    MaxInRatioError,
    MaxOutRatioError,
    PoolMathError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    SwapsDisabledError,
    TokenNotInPoolError,
    ZeroBalanceError,
    ZeroWeightError,
)
from .ledger import PoolLedger
from .liquidity import (
    stable_bpt_for_tokens_zero_price_impact,
    weighted_bpt_for_tokens_zero_price_impact,
)
from .parsing import parse_pool, parse_pools
from .registry import pricing_for
from .source import JsonFilePoolSource
from .stable import MetaStablePricing, StablePricing
from .types import (
    AnyPool,
    MetaStablePool,
    PairView,
    PoolToken,
    StablePairView,
    StablePool,
    WeightedPairView,
    WeightedPool,
)
from .weighted import WeightedPricing

__all__ = [
    # Pools
    "AnyPool",
    "PoolToken",
    "WeightedPool",
    "StablePool",
    "MetaStablePool",
    "PairView",
    "WeightedPairView",
    "StablePairView",
    # Pricing
    "PoolPricing",
    "WeightedPricing",
    "StablePricing",
    "MetaStablePricing",
    "pricing_for",
    # Snapshot handling
    "parse_pool",
    "parse_pools",
    "PoolLedger",
    "JsonFilePoolSource",
    # Pool share valuation
    "weighted_bpt_for_tokens_zero_price_impact",
    "stable_bpt_for_tokens_zero_price_impact",
    # Errors
    "PoolMathError",
    "MaxInRatioError",
    "MaxOutRatioError",
    "InvalidFeeError",
    "ZeroWeightError",
    "ZeroBalanceError",
    "TokenNotInPoolError",
    "SwapsDisabledError",
    "StableInvariantDidNotConverge",
    "StableGetBalanceDidNotConverge",
]
