"""Tests for stable and meta-stable pool pricing."""

from decimal import Decimal

import pytest

from sor.math.fixed_point import Bfp
from sor.models.types import SwapType
from sor.pools import stable_math
from sor.pools.errors import MaxOutRatioError, ZeroBalanceError
from sor.pools.registry import pricing_for
from sor.pools.stable import MetaStablePricing, StablePricing
from tests.helpers import (
    DAI,
    TOKEN_A,
    TOKEN_B,
    USDC,
    WETH,
    WSTETH,
    make_meta_stable_pool,
    make_stable_pool,
)

FEE = Decimal("0.0004")


@pytest.fixture
def usdc_dai_pool():
    return make_stable_pool("usdc-dai", {USDC: "1000", DAI: "1000"}, amp="200", fee="0.0004")


@pytest.fixture
def wsteth_weth_pool():
    """Meta-stable pool: 500 wstETH at rate 2 balance 1000 WETH."""
    return make_meta_stable_pool(
        "wsteth-weth",
        {WSTETH: "500", WETH: "1000"},
        price_rates={WSTETH: "2"},
        amp="50",
        fee="0.0004",
    )


class TestStableMath:
    def test_balanced_invariant_is_sum_of_balances(self) -> None:
        balances = [Bfp.from_int(1000), Bfp.from_int(1000)]
        invariant = stable_math.calculate_invariant(200 * 1000, balances)

        assert abs(invariant.to_decimal() - 2000) < Decimal("1e-9")

    def test_invariant_rejects_zero_balance(self) -> None:
        with pytest.raises(ZeroBalanceError):
            stable_math.calculate_invariant(200 * 1000, [Bfp.from_int(1), Bfp(0)])

    def test_invariant_derivative_is_one_when_balanced(self) -> None:
        balances = [Decimal(1000), Decimal(1000), Decimal(1000)]
        invariant = stable_math.invariant_decimal(Decimal(100), balances)
        derivative = stable_math.invariant_derivative(Decimal(100), balances, invariant, 0)

        assert abs(derivative - 1) < Decimal("1e-9")


class TestStableSwapAmounts:
    def test_exact_in_near_peg(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)
        amount_out = pricing.exact_out_given_in(pair, Decimal(10))

        # 10 minus the 0.04% fee, minus a very small slippage
        assert Decimal("9.99") < amount_out < Decimal("9.996")

    def test_exact_out_inverts_exact_in(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)
        amount_out = pricing.exact_out_given_in(pair, Decimal(10))
        amount_in = pricing.exact_in_given_out(pair, amount_out)

        # USDC has 6 decimals; the required input is rounded up
        assert Decimal("9.9999") < amount_in <= Decimal("10.000001")
        assert amount_in == amount_in.quantize(Decimal("0.000001"))

    def test_exact_out_limit_is_ninety_nine_percent_of_balance_out(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)

        assert pricing.limit_amount(pair, SwapType.EXACT_OUT) == Decimal(990)

    def test_exact_in_limit_buys_ninety_nine_percent(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)
        limit = pricing.limit_amount(pair, SwapType.EXACT_IN)

        # Draining a balanced pool costs more than the peg value
        assert limit > Decimal(990)
        assert Decimal(989) < pricing.exact_out_given_in(pair, limit) <= Decimal(990)

    def test_exact_in_limit_reachable_when_imbalanced(self) -> None:
        """Token in is scarce, so far less than 990 of it already buys 99% of token out."""
        pool = make_stable_pool("lopsided", {TOKEN_A: "1", TOKEN_B: "1000"}, amp="200")
        pricing = StablePricing()
        pair = pricing.pair_view(pool, TOKEN_A, TOKEN_B)
        limit = pricing.limit_amount(pair, SwapType.EXACT_IN)

        assert limit < Decimal(990)
        assert pricing.exact_out_given_in(pair, limit) <= Decimal(990)
        with pytest.raises(MaxOutRatioError):
            pricing.exact_out_given_in(pair, limit * Decimal("1.01"))

    def test_exact_out_above_limit_raises(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)

        with pytest.raises(MaxOutRatioError):
            pricing.exact_in_given_out(pair, Decimal(995))

    def test_three_token_pool(self) -> None:
        pool = make_stable_pool("three-pool", {USDC: "1000", DAI: "1000", WETH: "1000"})
        pricing = pricing_for(pool)
        pair = pricing.pair_view(pool, DAI, USDC)

        assert pair.index_in == 1 and pair.index_out == 0
        assert len(pair.balances) == 3
        assert Decimal("9.99") < pricing.exact_out_given_in(pair, Decimal(10)) < Decimal(10)

    def test_zero_balance_pool_raises(self) -> None:
        pool = make_stable_pool("drained", {USDC: "1000", DAI: "0"})

        with pytest.raises(ZeroBalanceError):
            StablePricing().pair_view(pool, USDC, DAI)


class TestStableSpotPrice:
    def test_balanced_spot_price_is_fee_only(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)
        sp = pricing.spot_price_after_swap(pair, SwapType.EXACT_IN, Decimal(0))

        assert abs(sp - 1 / (1 - FEE)) < Decimal("1e-12")

    @pytest.mark.parametrize("swap_type", [SwapType.EXACT_IN, SwapType.EXACT_OUT])
    def test_spot_price_increases_with_amount(self, usdc_dai_pool, swap_type: SwapType) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)

        sp_zero = pricing.spot_price_after_swap(pair, swap_type, Decimal(0))
        sp_large = pricing.spot_price_after_swap(pair, swap_type, Decimal(500))
        assert sp_large > sp_zero
        assert pricing.derivative_of_spot_price(pair, swap_type, Decimal(100)) > 0

    def test_derivative_at_zero_uses_forward_difference(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)

        assert pricing.derivative_of_spot_price(pair, SwapType.EXACT_IN, Decimal(0)) > 0

    def test_normalized_liquidity_scales_with_amp(self, usdc_dai_pool) -> None:
        pricing = StablePricing()
        pair = pricing.pair_view(usdc_dai_pool, USDC, DAI)

        assert pricing.normalized_liquidity(pair) == Decimal(1000) * Decimal(200)


class TestMetaStable:
    def test_registry_dispatches_meta_stable(self, wsteth_weth_pool) -> None:
        assert isinstance(pricing_for(wsteth_weth_pool), MetaStablePricing)

    def test_balances_scaled_by_rate(self, wsteth_weth_pool) -> None:
        pair = MetaStablePricing().pair_view(wsteth_weth_pool, WSTETH, WETH)

        assert pair.balances == (Decimal(1000), Decimal(1000))
        assert pair.rate_in == Decimal(2)
        assert pair.balance_in == Decimal(500)

    def test_exact_in_uses_rate(self, wsteth_weth_pool) -> None:
        pricing = MetaStablePricing()
        pair = pricing.pair_view(wsteth_weth_pool, WSTETH, WETH)
        amount_out = pricing.exact_out_given_in(pair, Decimal(1))

        assert abs(amount_out - 2 * (1 - FEE)) < Decimal("0.001")

    def test_exact_out_uses_rate(self, wsteth_weth_pool) -> None:
        pricing = MetaStablePricing()
        pair = pricing.pair_view(wsteth_weth_pool, WETH, WSTETH)
        amount_in = pricing.exact_in_given_out(pair, Decimal(1))

        assert abs(amount_in - 2 / (1 - FEE)) < Decimal("0.001")

    def test_spot_price_in_real_units(self, wsteth_weth_pool) -> None:
        pricing = MetaStablePricing()
        pair = pricing.pair_view(wsteth_weth_pool, WSTETH, WETH)
        sp = pricing.spot_price_after_swap(pair, SwapType.EXACT_IN, Decimal(0))

        assert abs(sp - Decimal("0.5") / (1 - FEE)) < Decimal("1e-12")

    def test_exact_in_limit_converted_by_rates(self, wsteth_weth_pool) -> None:
        """At rate 2, buying 990 WETH takes more than its 495 wstETH peg value."""
        pricing = MetaStablePricing()
        pair = pricing.pair_view(wsteth_weth_pool, WSTETH, WETH)
        limit = pricing.limit_amount(pair, SwapType.EXACT_IN)

        assert Decimal(495) < limit < Decimal(990)
        assert Decimal(989) < pricing.exact_out_given_in(pair, limit) <= Decimal(990)
        assert pricing.limit_amount(pair, SwapType.EXACT_OUT) == Decimal(990)
