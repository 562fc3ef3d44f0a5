"""Router configuration.

``SorConfig`` holds process-wide tuning of the optimizer and candidate
enumeration. ``RouteOptions`` holds the options of a single route request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sor.constants import (
    DEFAULT_MAX_CANDIDATE_PATHS,
    DEFAULT_MAX_HOPS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_POOLS,
    DEFAULT_SWAP_GAS,
    DEFAULT_TOLERANCE,
)
from sor.models.types import PoolFilter

# Deepest path the graph builder enumerates
MAX_SUPPORTED_HOPS = 3


@dataclass(frozen=True)
class SorConfig:
    """Tuning of the allocation optimizer and path enumeration.

    Attributes:
        max_iterations: Newton steps allowed to equalize marginal prices
        tolerance: Relative spot price gap accepted as equal
        max_candidate_paths: Candidate paths kept after enumeration
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    tolerance: Decimal = DEFAULT_TOLERANCE
    max_candidate_paths: int = DEFAULT_MAX_CANDIDATE_PATHS

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_candidate_paths < 1:
            raise ValueError(
                f"max_candidate_paths must be >= 1, got {self.max_candidate_paths}"
            )

    @classmethod
    def from_env(cls) -> SorConfig:
        """Build a config from environment variables.

        - SOR_MAX_ITERATIONS: Newton step limit (default: 30)
        - SOR_TOLERANCE: Relative price tolerance (default: 1e-10)
        - SOR_MAX_CANDIDATE_PATHS: Candidate path cap (default: 20)

        Raises:
            ValueError: If a variable is set to an invalid value
        """
        try:
            tolerance = Decimal(os.environ.get("SOR_TOLERANCE", str(DEFAULT_TOLERANCE)))
        except InvalidOperation as e:
            raise ValueError(f"Invalid SOR_TOLERANCE: {os.environ['SOR_TOLERANCE']}") from e
        return cls(
            max_iterations=int(os.environ.get("SOR_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS)),
            tolerance=tolerance,
            max_candidate_paths=int(
                os.environ.get("SOR_MAX_CANDIDATE_PATHS", DEFAULT_MAX_CANDIDATE_PATHS)
            ),
        )


# Default configuration instance
DEFAULT_SOR_CONFIG = SorConfig()


@dataclass(frozen=True)
class RouteOptions:
    """Options of one route request.

    Attributes:
        max_pools: Maximum number of paths in the plan
        pool_type_filter: Pool types allowed to take part
        max_hops: Maximum swaps per path (1 to 3)
        gas_price: Gas price in wei, forwarded to the gas cost function
        swap_gas: Gas units charged per path
        max_candidate_paths: Overrides the configured candidate path cap
    """

    max_pools: int = DEFAULT_MAX_POOLS
    pool_type_filter: PoolFilter = PoolFilter.ALL
    max_hops: int = DEFAULT_MAX_HOPS
    gas_price: int = 0
    swap_gas: int = DEFAULT_SWAP_GAS
    max_candidate_paths: int | None = None

    def __post_init__(self) -> None:
        if self.max_pools < 1:
            raise ValueError(f"max_pools must be >= 1, got {self.max_pools}")
        if not 1 <= self.max_hops <= MAX_SUPPORTED_HOPS:
            raise ValueError(
                f"max_hops must be between 1 and {MAX_SUPPORTED_HOPS}, got {self.max_hops}"
            )
        if self.gas_price < 0:
            raise ValueError(f"gas_price must be non-negative, got {self.gas_price}")
        if self.swap_gas < 0:
            raise ValueError(f"swap_gas must be non-negative, got {self.swap_gas}")
        if self.max_candidate_paths is not None and self.max_candidate_paths < 1:
            raise ValueError(
                f"max_candidate_paths must be >= 1, got {self.max_candidate_paths}"
            )


DEFAULT_ROUTE_OPTIONS = RouteOptions()

__all__ = [
    "SorConfig",
    "DEFAULT_SOR_CONFIG",
    "RouteOptions",
    "DEFAULT_ROUTE_OPTIONS",
    "MAX_SUPPORTED_HOPS",
]
