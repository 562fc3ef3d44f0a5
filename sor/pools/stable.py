"""Stable and meta-stable pool pricing.

Swap amounts come from the integer invariant math. Spot prices are read off
the invariant's partial derivatives at the post-swap balances, and their
derivatives are taken by finite differences.

Meta-stable pools run the same math on balances multiplied by each token's
price rate; amounts are converted back to real token units on the way out.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from sor.constants import LIMIT_ROUNDING_MARGIN, STABLE_MAX_OUT_RATIO
from sor.errors import InsufficientLiquidity
from sor.math.fixed_point import Bfp
from sor.math.precision import ONE, ZERO, high_precision, quantize_down, quantize_up
from sor.models.types import SwapType

from . import stable_math
from .base import pair_indices
from .errors import MaxOutRatioError, ZeroBalanceError
from .scaling import add_swap_fee_amount, subtract_swap_fee_amount, to_bfp
from .types import StablePairView, StablePool

logger = structlog.get_logger()

# Relative step of the finite-difference derivative
_DERIVATIVE_STEP = Decimal("1e-6")


class StablePricing:
    """Pricing model for StablePool."""

    def _rates(self, pool: StablePool) -> tuple[Decimal, ...]:
        return tuple(ONE for _ in pool.tokens)

    @high_precision
    def pair_view(self, pool: StablePool, token_in: str, token_out: str) -> StablePairView:
        index_in, index_out = pair_indices(pool, token_in, token_out)
        if any(t.balance <= 0 for t in pool.tokens):
            logger.debug("stable_pool_zero_balance", pool_id=pool.id)
            raise ZeroBalanceError(f"Pool {pool.id} has a zero balance")

        rates = self._rates(pool)
        return StablePairView(
            pool_id=pool.id,
            pool_type=pool.pool_type,
            token_in=pool.tokens[index_in].address,
            token_out=pool.tokens[index_out].address,
            decimals_in=pool.tokens[index_in].decimals,
            decimals_out=pool.tokens[index_out].decimals,
            balances=tuple(t.balance * rate for t, rate in zip(pool.tokens, rates, strict=True)),
            index_in=index_in,
            index_out=index_out,
            amp=pool.amp,
            swap_fee=pool.swap_fee,
            rate_in=rates[index_in],
            rate_out=rates[index_out],
        )

    def _bfp_balances(self, pair: StablePairView) -> list[Bfp]:
        return [to_bfp(b) for b in pair.balances]

    def _check_out_ratio(self, pair: StablePairView, scaled_out: Decimal) -> None:
        max_out = pair.balances[pair.index_out] * STABLE_MAX_OUT_RATIO
        if scaled_out > max_out:
            raise MaxOutRatioError(
                f"Output {scaled_out} exceeds {STABLE_MAX_OUT_RATIO} of balance "
                f"{pair.balances[pair.index_out]}"
            )

    def _scaled_out_given_in(self, pair: StablePairView, scaled_in: Decimal) -> Decimal:
        """Scaled output for a scaled input that already had its fee removed."""
        amount_out = stable_math.stable_calc_out_given_in(
            stable_math.scaled_amp(pair.amp),
            self._bfp_balances(pair),
            pair.index_in,
            pair.index_out,
            to_bfp(scaled_in),
        )
        return amount_out.to_decimal()

    def _scaled_in_given_out(self, pair: StablePairView, scaled_out: Decimal) -> Decimal:
        """Scaled input (before fee) required for a scaled output."""
        amount_in = stable_math.stable_calc_in_given_out(
            stable_math.scaled_amp(pair.amp),
            self._bfp_balances(pair),
            pair.index_in,
            pair.index_out,
            to_bfp(scaled_out, round_up=True),
        )
        return amount_in.to_decimal()

    @high_precision
    def exact_out_given_in(self, pair: StablePairView, amount_in: Decimal) -> Decimal:
        if amount_in <= 0:
            return ZERO
        net_in = subtract_swap_fee_amount(to_bfp(amount_in * pair.rate_in), pair.swap_fee)
        scaled_out = self._scaled_out_given_in(pair, net_in.to_decimal())
        self._check_out_ratio(pair, scaled_out)
        return quantize_down(scaled_out / pair.rate_out, pair.decimals_out)

    @high_precision
    def exact_in_given_out(self, pair: StablePairView, amount_out: Decimal) -> Decimal:
        if amount_out <= 0:
            return ZERO
        scaled_out = amount_out * pair.rate_out
        self._check_out_ratio(pair, scaled_out)
        scaled_in = self._scaled_in_given_out(pair, scaled_out)
        gross_in = add_swap_fee_amount(to_bfp(scaled_in, round_up=True), pair.swap_fee)
        return quantize_up(gross_in.to_decimal() / pair.rate_in, pair.decimals_in)

    @high_precision
    def limit_amount(self, pair: StablePairView, swap_type: SwapType) -> Decimal:
        max_out = quantize_down(pair.balance_out * STABLE_MAX_OUT_RATIO, pair.decimals_out)
        if not swap_type.is_exact_in:
            return max_out
        # Input that buys 99% of balance_out, shaved so rounding stays under it
        try:
            amount_in = self.exact_in_given_out(pair, max_out)
        except InsufficientLiquidity as e:
            logger.debug("stable_limit_at_peg", pool_id=pair.pool_id, error=str(e))
            return quantize_down(max_out * pair.rate_out / pair.rate_in, pair.decimals_in)
        return quantize_down(amount_in * (ONE - LIMIT_ROUNDING_MARGIN), pair.decimals_in)

    @high_precision
    def _balances_after(
        self, pair: StablePairView, swap_type: SwapType, amount: Decimal
    ) -> list[Decimal]:
        """Scaled balances after the swap, fees excluded (the invariant is unchanged)."""
        balances = list(pair.balances)
        if amount <= 0:
            return balances
        if swap_type.is_exact_in:
            scaled_in = amount * pair.rate_in * (ONE - pair.swap_fee)
            scaled_out = self._scaled_out_given_in(pair, scaled_in)
        else:
            scaled_out = amount * pair.rate_out
            scaled_in = self._scaled_in_given_out(pair, scaled_out)
        balances[pair.index_in] += scaled_in
        balances[pair.index_out] -= scaled_out
        if balances[pair.index_out] <= 0:
            raise ZeroBalanceError(f"Swap drains pool {pair.pool_id}")
        return balances

    @high_precision
    def spot_price_after_swap(
        self, pair: StablePairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        invariant = stable_math.invariant_decimal(pair.amp, pair.balances)
        balances = self._balances_after(pair, swap_type, amount)
        scaled_price = stable_math.spot_price(
            pair.amp, balances, invariant, pair.index_in, pair.index_out, pair.swap_fee
        )
        # scaled units back to real units of token_in per token_out
        return scaled_price * pair.rate_out / pair.rate_in

    @high_precision
    def derivative_of_spot_price(
        self, pair: StablePairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        reference = pair.balance_in if swap_type.is_exact_in else pair.balance_out
        step = reference * _DERIVATIVE_STEP
        upper = self.spot_price_after_swap(pair, swap_type, amount + step)
        if amount >= step:
            lower = self.spot_price_after_swap(pair, swap_type, amount - step)
            return (upper - lower) / (2 * step)
        return (upper - self.spot_price_after_swap(pair, swap_type, amount)) / step

    @high_precision
    def normalized_liquidity(self, pair: StablePairView) -> Decimal:
        return pair.balances[pair.index_out] * pair.amp


class MetaStablePricing(StablePricing):
    """Pricing model for MetaStablePool: stable math on rate-scaled balances."""

    def _rates(self, pool: StablePool) -> tuple[Decimal, ...]:
        return tuple(t.price_rate for t in pool.tokens)


__all__ = ["StablePricing", "MetaStablePricing"]
