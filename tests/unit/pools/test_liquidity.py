"""Tests for zero price impact pool share (BPT) valuation."""

from decimal import Decimal

import pytest

from sor.pools.errors import ZeroBalanceError
from sor.pools.liquidity import (
    stable_bpt_for_tokens_zero_price_impact,
    weighted_bpt_for_tokens_zero_price_impact,
)

E18 = 10**18


class TestWeightedBpt:
    def test_single_token_proportional_share(self) -> None:
        """1% of one token's balance in a 50/50 pool is worth 0.5% of the supply."""
        bpt = weighted_bpt_for_tokens_zero_price_impact(
            balances=[100 * E18, 100 * E18],
            decimals=[18, 18],
            normalized_weights=["0.5", "0.5"],
            amounts=[1 * E18, 0],
            bpt_total_supply=200 * E18,
        )

        assert bpt == 1 * E18

    def test_proportional_join_matches_supply_share(self) -> None:
        """Amounts in the pool's own proportions mint the same share of supply."""
        bpt = weighted_bpt_for_tokens_zero_price_impact(
            balances=[800 * E18, 200 * 10**6],
            decimals=[18, 6],
            normalized_weights=[Decimal("0.8"), Decimal("0.2")],
            amounts=[8 * E18, 2 * 10**6],
            bpt_total_supply=1000 * E18,
        )

        assert bpt == 10 * E18

    def test_mismatched_lengths_raise(self) -> None:
        with pytest.raises(ValueError):
            weighted_bpt_for_tokens_zero_price_impact(
                balances=[1, 2],
                decimals=[18],
                normalized_weights=["0.5", "0.5"],
                amounts=[1, 1],
                bpt_total_supply=10,
            )

    def test_zero_balance_with_amount_raises(self) -> None:
        with pytest.raises(ZeroBalanceError):
            weighted_bpt_for_tokens_zero_price_impact(
                balances=[0, 100],
                decimals=[18, 18],
                normalized_weights=["0.5", "0.5"],
                amounts=[1, 0],
                bpt_total_supply=10,
            )


class TestStableBpt:
    def test_balanced_pool_values_tokens_at_par(self) -> None:
        bpt = stable_bpt_for_tokens_zero_price_impact(
            balances=[1000 * E18, 1000 * E18],
            decimals=[18, 18],
            amounts=[10 * E18, 0],
            bpt_total_supply=2000 * E18,
            amp=200,
        )

        assert abs(bpt - 10 * E18) < 10**9

    def test_decimals_are_normalized(self) -> None:
        bpt = stable_bpt_for_tokens_zero_price_impact(
            balances=[1000 * 10**6, 1000 * E18],
            decimals=[6, 18],
            amounts=[10 * 10**6, 0],
            bpt_total_supply=2000 * E18,
            amp="200",
        )

        assert abs(bpt - 10 * E18) < 10**9

    def test_scarce_token_is_worth_more(self) -> None:
        """A token the pool is short of grows the invariant more per unit."""
        scarce = stable_bpt_for_tokens_zero_price_impact(
            balances=[500 * E18, 1500 * E18],
            decimals=[18, 18],
            amounts=[10 * E18, 0],
            bpt_total_supply=2000 * E18,
            amp=50,
        )
        abundant = stable_bpt_for_tokens_zero_price_impact(
            balances=[500 * E18, 1500 * E18],
            decimals=[18, 18],
            amounts=[0, 10 * E18],
            bpt_total_supply=2000 * E18,
            amp=50,
        )

        assert scarce > abundant

    def test_zero_balance_raises(self) -> None:
        with pytest.raises(ZeroBalanceError):
            stable_bpt_for_tokens_zero_price_impact(
                balances=[0, 1],
                decimals=[18, 18],
                amounts=[1, 0],
                bpt_total_supply=10,
                amp=100,
            )
