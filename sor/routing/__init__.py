"""Path enumeration, allocation and swap plan assembly."""

from sor.routing.limits import PathLimiter, path_limit
from sor.routing.optimizer import (
    Allocation,
    AllocationOptimizer,
    HopExecution,
    PathExecution,
)
from sor.routing.path import Hop, Path, PathCandidate, path_spot_price
from sor.routing.pathfinding import PoolGraph, path_normalized_liquidity
from sor.routing.plan import SwapPlan, SwapStep, assemble_plan, to_swap_info
from sor.routing.router import SOR, PoolDataSource, route

__all__ = [
    "Hop",
    "Path",
    "PathCandidate",
    "path_spot_price",
    "PoolGraph",
    "path_normalized_liquidity",
    "PathLimiter",
    "path_limit",
    "AllocationOptimizer",
    "Allocation",
    "PathExecution",
    "HopExecution",
    "SwapPlan",
    "SwapStep",
    "assemble_plan",
    "to_swap_info",
    "route",
    "SOR",
    "PoolDataSource",
]
