"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses and decimals
- factories: Pool and pool snapshot factory functions
"""

from tests.helpers.constants import (
    BAL,
    DAI,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    TOKEN_D,
    TOKEN_DECIMALS,
    UNKNOWN_TOKEN,
    USDC,
    WETH,
    WSTETH,
)
from tests.helpers.factories import (
    make_meta_stable_pool,
    make_stable_pool,
    make_subgraph_pool,
    make_weighted_pool,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "WSTETH",
    "BAL",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKEN_D",
    "UNKNOWN_TOKEN",
    "TOKEN_DECIMALS",
    # Factories
    "make_weighted_pool",
    "make_stable_pool",
    "make_meta_stable_pool",
    "make_subgraph_pool",
]
