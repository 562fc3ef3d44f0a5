"""Weighted pool pricing.

Also prices liquidity bootstrapping pools, which share the weighted
invariant and only differ in that swaps may be paused.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from sor.math.fixed_point import Bfp
from sor.math.precision import ZERO, high_precision, quantize_down
from sor.models.types import SwapType

from . import weighted_math
from .base import pair_indices
from .errors import ZeroBalanceError, ZeroWeightError
from .scaling import (
    add_swap_fee_amount,
    from_bfp_down,
    from_bfp_up,
    subtract_swap_fee_amount,
    to_bfp,
)
from .types import WeightedPairView, WeightedPool

logger = structlog.get_logger()

# Share of a balance a weighted pool accepts in (or gives out) per swap
MAX_RATIO = Decimal("0.3")


class WeightedPricing:
    """Pricing model for WeightedPool (and liquidity bootstrapping pools)."""

    def pair_view(self, pool: WeightedPool, token_in: str, token_out: str) -> WeightedPairView:
        index_in, index_out = pair_indices(pool, token_in, token_out)
        t_in = pool.tokens[index_in]
        t_out = pool.tokens[index_out]

        if not t_in.weight or not t_out.weight:
            raise ZeroWeightError(f"Pool {pool.id} has a token without weight")
        if t_in.balance <= 0 or t_out.balance <= 0:
            logger.debug("weighted_pool_zero_balance", pool_id=pool.id)
            raise ZeroBalanceError(f"Pool {pool.id} has a zero balance for the pair")

        return WeightedPairView(
            pool_id=pool.id,
            pool_type=pool.pool_type,
            token_in=t_in.address,
            token_out=t_out.address,
            decimals_in=t_in.decimals,
            decimals_out=t_out.decimals,
            balance_in=t_in.balance,
            balance_out=t_out.balance,
            weight_in=t_in.weight,
            weight_out=t_out.weight,
            swap_fee=pool.swap_fee,
        )

    def _bfp_operands(self, pair: WeightedPairView) -> tuple[Bfp, Bfp, Bfp, Bfp]:
        return (
            to_bfp(pair.balance_in),
            to_bfp(pair.weight_in),
            to_bfp(pair.balance_out),
            to_bfp(pair.weight_out),
        )

    def exact_out_given_in(self, pair: WeightedPairView, amount_in: Decimal) -> Decimal:
        if amount_in <= 0:
            return ZERO
        balance_in, weight_in, balance_out, weight_out = self._bfp_operands(pair)
        amount_in_bfp = subtract_swap_fee_amount(to_bfp(amount_in), pair.swap_fee)
        amount_out = weighted_math.calc_out_given_in(
            balance_in, weight_in, balance_out, weight_out, amount_in_bfp
        )
        return from_bfp_down(amount_out, pair.decimals_out)

    def exact_in_given_out(self, pair: WeightedPairView, amount_out: Decimal) -> Decimal:
        if amount_out <= 0:
            return ZERO
        balance_in, weight_in, balance_out, weight_out = self._bfp_operands(pair)
        amount_in = weighted_math.calc_in_given_out(
            balance_in, weight_in, balance_out, weight_out, to_bfp(amount_out, round_up=True)
        )
        return from_bfp_up(add_swap_fee_amount(amount_in, pair.swap_fee), pair.decimals_in)

    @high_precision
    def limit_amount(self, pair: WeightedPairView, swap_type: SwapType) -> Decimal:
        if swap_type.is_exact_in:
            return quantize_down(pair.balance_in * MAX_RATIO, pair.decimals_in)
        return quantize_down(pair.balance_out * MAX_RATIO, pair.decimals_out)

    def spot_price_after_swap(
        self, pair: WeightedPairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        formula = (
            weighted_math.spot_price_after_exact_in
            if swap_type.is_exact_in
            else weighted_math.spot_price_after_exact_out
        )
        return formula(
            pair.balance_in,
            pair.weight_in,
            pair.balance_out,
            pair.weight_out,
            pair.swap_fee,
            amount,
        )

    def derivative_of_spot_price(
        self, pair: WeightedPairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        formula = (
            weighted_math.derivative_after_exact_in
            if swap_type.is_exact_in
            else weighted_math.derivative_after_exact_out
        )
        return formula(
            pair.balance_in,
            pair.weight_in,
            pair.balance_out,
            pair.weight_out,
            pair.swap_fee,
            amount,
        )

    @high_precision
    def normalized_liquidity(self, pair: WeightedPairView) -> Decimal:
        return pair.balance_out * pair.weight_in / (pair.weight_in + pair.weight_out)


__all__ = ["WeightedPricing", "MAX_RATIO"]
