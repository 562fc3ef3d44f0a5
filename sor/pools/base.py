"""Pricing capability shared by every pool variant."""

from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from sor.models.types import SwapType

from .errors import SwapsDisabledError, TokenNotInPoolError
from .types import PairView


@runtime_checkable
class PoolPricing(Protocol):
    """Protocol for pool pricing models.

    All amounts and prices are human-unit Decimals. Spot prices are quoted
    as tokenIn per tokenOut with the swap fee included, so a lower spot
    price is better for both swap directions and its derivative with
    respect to the swap amount is positive.

    Pricing failures (amounts beyond the pool's limits, zero balances,
    non-converging invariants) raise subclasses of InsufficientLiquidity.
    """

    def pair_view(self, pool: Any, token_in: str, token_out: str) -> PairView:
        """Project the pool onto a token pair.

        Raises:
            TokenNotInPoolError: If either token is missing or both are equal
        """
        ...

    def exact_out_given_in(self, pair: PairView, amount_in: Decimal) -> Decimal:
        """Output received for selling ``amount_in``, rounded down to token decimals."""
        ...

    def exact_in_given_out(self, pair: PairView, amount_out: Decimal) -> Decimal:
        """Input required to buy ``amount_out``, rounded up to token decimals."""
        ...

    def limit_amount(self, pair: PairView, swap_type: SwapType) -> Decimal:
        """Largest swap amount (in the swap's fixed token) the pool accepts."""
        ...

    def spot_price_after_swap(
        self, pair: PairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        """Marginal price after swapping ``amount`` of the fixed token."""
        ...

    def derivative_of_spot_price(
        self, pair: PairView, swap_type: SwapType, amount: Decimal
    ) -> Decimal:
        """d(spot price)/d(amount) at ``amount``."""
        ...

    def normalized_liquidity(self, pair: PairView) -> Decimal:
        """Depth of the pair in token_out units, used to rank pools."""
        ...


def pair_indices(pool: Any, token_in: str, token_out: str) -> tuple[int, int]:
    """Indices of token_in and token_out inside ``pool.tokens``.

    Raises:
        TokenNotInPoolError: If either token is missing or both are equal
        SwapsDisabledError: If the pool has swaps paused
    """
    if not pool.swap_enabled:
        raise SwapsDisabledError(f"Swaps are disabled on pool {pool.id}")
    index_in = pool.token_index(token_in)
    index_out = pool.token_index(token_out)
    if index_in is None or index_out is None:
        raise TokenNotInPoolError(f"Pool {pool.id} does not hold {token_in} and {token_out}")
    if index_in == index_out:
        raise TokenNotInPoolError(f"Cannot swap {token_in} with itself in pool {pool.id}")
    return index_in, index_out
