"""Routing defaults and protocol constants."""

from decimal import Decimal

# Route option defaults
DEFAULT_MAX_POOLS = 4
DEFAULT_MAX_HOPS = 2
# Gas units charged per path used in a plan
DEFAULT_SWAP_GAS = 35_000

# Candidate paths kept after enumeration
DEFAULT_MAX_CANDIDATE_PATHS = 20

# Marginal-price equalization loop
DEFAULT_MAX_ITERATIONS = 30
DEFAULT_TOLERANCE = Decimal("1e-10")

# Multi-hop limits are shaved by this relative margin so that the rounding
# of intermediate amounts never pushes a later hop past its own limit.
LIMIT_ROUNDING_MARGIN = Decimal("1e-9")

# Share of balance_out a stable pool may give out in one swap
STABLE_MAX_OUT_RATIO = Decimal("0.99")

# Native asset (ETH) decimals for gas cost conversion
NATIVE_ASSET_DECIMALS = 18
