"""Request, snapshot and result models."""

from sor.models.subgraph import SubgraphPool, SubgraphToken
from sor.models.swap_info import SwapInfo, SwapV2
from sor.models.types import Address, PoolFilter, PoolType, SwapType, normalize_address

__all__ = [
    "Address",
    "PoolFilter",
    "PoolType",
    "SwapType",
    "normalize_address",
    "SubgraphPool",
    "SubgraphToken",
    "SwapInfo",
    "SwapV2",
]
