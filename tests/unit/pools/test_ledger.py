"""Tests for the immutable per-request pool ledger."""

from decimal import Decimal

import pytest

from sor.pools.ledger import PoolLedger
from sor.pools.types import WeightedPool
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C


class TestPoolLedger:
    def test_mapping_interface(self, split_pools: list[WeightedPool]) -> None:
        ledger = PoolLedger(split_pools)

        assert len(ledger) == 2
        assert set(ledger) == {"pool-balanced", "pool-cheap"}
        assert ledger["pool-cheap"] is split_pools[1]
        assert ledger.touched == frozenset()

    def test_with_swap_returns_new_ledger(self, split_ledger: PoolLedger) -> None:
        updated = split_ledger.with_swap(
            "pool-balanced", TOKEN_A, Decimal(10), TOKEN_B, Decimal("9")
        )

        pool = updated["pool-balanced"]
        assert pool.get_token(TOKEN_A).balance == Decimal(110)
        assert pool.get_token(TOKEN_B).balance == Decimal(91)
        assert updated.touched == frozenset({"pool-balanced"})

        # The original ledger and the snapshot pool are unchanged
        original = split_ledger["pool-balanced"]
        assert original.get_token(TOKEN_A).balance == Decimal(100)
        assert split_ledger.touched == frozenset()

    def test_sequential_swaps_accumulate(self, split_ledger: PoolLedger) -> None:
        ledger = split_ledger.with_swap("pool-cheap", TOKEN_A, Decimal(1), TOKEN_B, Decimal(1))
        ledger = ledger.with_swap("pool-cheap", TOKEN_A, Decimal(2), TOKEN_B, Decimal(1))

        pool = ledger["pool-cheap"]
        assert pool.get_token(TOKEN_A).balance == Decimal(53)
        assert pool.get_token(TOKEN_B).balance == Decimal(58)

    def test_swap_with_unknown_token_raises(self, split_ledger: PoolLedger) -> None:
        with pytest.raises(KeyError):
            split_ledger.with_swap("pool-cheap", TOKEN_A, Decimal(1), TOKEN_C, Decimal(1))

    def test_unknown_pool_raises(self, split_ledger: PoolLedger) -> None:
        with pytest.raises(KeyError):
            split_ledger["missing"]
