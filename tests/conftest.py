"""Pytest configuration and fixtures."""

import pytest

from sor.pools.ledger import PoolLedger
from sor.pools.types import WeightedPool
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C, make_weighted_pool


@pytest.fixture
def balanced_pool() -> WeightedPool:
    """50/50 A/B pool with 100 of each token and a 0.3% fee."""
    return make_weighted_pool("pool-balanced", {TOKEN_A: "100", TOKEN_B: "100"})


@pytest.fixture
def cheap_pool() -> WeightedPool:
    """50/50 A/B pool priced below the balanced pool (50 A, 60 B)."""
    return make_weighted_pool("pool-cheap", {TOKEN_A: "50", TOKEN_B: "60"})


@pytest.fixture
def split_pools(balanced_pool: WeightedPool, cheap_pool: WeightedPool) -> list[WeightedPool]:
    """Two A/B pools where the best exact-in route for 10 A uses both."""
    return [balanced_pool, cheap_pool]


@pytest.fixture
def two_hop_pools() -> list[WeightedPool]:
    """A/C and C/B pools; A and B are only connected through C."""
    return [
        make_weighted_pool("pool-ac", {TOKEN_A: "1000", TOKEN_C: "2000"}),
        make_weighted_pool("pool-cb", {TOKEN_C: "2000", TOKEN_B: "1000"}),
    ]


@pytest.fixture
def split_ledger(split_pools: list[WeightedPool]) -> PoolLedger:
    return PoolLedger(split_pools)
