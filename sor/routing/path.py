"""Paths and multi-hop pricing.

A path is an ordered chain of hops. Pricing a path composes the pool
pricing model hop by hop against a ledger; the ledger is only read here,
applying swaps is the optimizer's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sor.math.precision import ONE, high_precision
from sor.models.types import SwapType
from sor.pools.base import PoolPricing
from sor.pools.ledger import PoolLedger
from sor.pools.registry import pricing_for
from sor.pools.types import PairView


@dataclass(frozen=True)
class Hop:
    """One swap of a path through a single pool."""

    pool_id: str
    token_in: str
    token_out: str


@dataclass(frozen=True)
class Path:
    """Chain of hops from token_in to token_out.

    Attributes:
        id: Pool ids joined by "_", unique per path
        hops: Ordered hops; hop k's token_out is hop k+1's token_in
    """

    id: str
    hops: tuple[Hop, ...]

    @classmethod
    def from_hops(cls, hops: tuple[Hop, ...]) -> Path:
        if not hops:
            raise ValueError("A path needs at least one hop")
        for prev, nxt in zip(hops, hops[1:], strict=False):
            if prev.token_out != nxt.token_in:
                raise ValueError(f"Hops {prev.pool_id} and {nxt.pool_id} are not chained")
        return cls(id="_".join(h.pool_id for h in hops), hops=hops)

    @property
    def token_in(self) -> str:
        return self.hops[0].token_in

    @property
    def token_out(self) -> str:
        return self.hops[-1].token_out

    @property
    def pool_ids(self) -> tuple[str, ...]:
        return tuple(h.pool_id for h in self.hops)

    @property
    def tokens(self) -> tuple[str, ...]:
        return (self.token_in, *(h.token_out for h in self.hops))

    def __len__(self) -> int:
        return len(self.hops)


@dataclass(frozen=True)
class PathCandidate:
    """A path with its liquidity limit and zero-amount spot price.

    ``limit`` is in units of the swap's fixed token: token_in for exact in,
    token_out for exact out.
    """

    path: Path
    limit: Decimal
    spot_price: Decimal

    @property
    def id(self) -> str:
        return self.path.id


def hop_views(path: Path, ledger: PoolLedger) -> list[tuple[PoolPricing, PairView]]:
    """Pricing model and pair view of every hop, at the ledger's balances."""
    views = []
    for hop in path.hops:
        pool = ledger[hop.pool_id]
        pricing = pricing_for(pool)
        views.append((pricing, pricing.pair_view(pool, hop.token_in, hop.token_out)))
    return views


def path_amount_out(path: Path, ledger: PoolLedger, amount_in: Decimal) -> Decimal:
    """Output of the whole path for ``amount_in``, hop by hop."""
    amount = amount_in
    for pricing, pair in hop_views(path, ledger):
        amount = pricing.exact_out_given_in(pair, amount)
    return amount


def path_amount_in(path: Path, ledger: PoolLedger, amount_out: Decimal) -> Decimal:
    """Input the whole path needs to produce ``amount_out``, last hop first."""
    amount = amount_out
    for pricing, pair in reversed(hop_views(path, ledger)):
        amount = pricing.exact_in_given_out(pair, amount)
    return amount


@high_precision
def path_spot_price(
    path: Path,
    ledger: PoolLedger,
    swap_type: SwapType,
    amount: Decimal,
    *,
    with_derivative: bool = True,
) -> tuple[Decimal, Decimal]:
    """Spot price of the path after swapping ``amount``, and its derivative.

    The path price is the product of hop prices, each evaluated at the
    amount that reaches the hop. For exact in the amount flows forward; for
    exact out it flows backward from the last hop.

    Returns:
        (spot_price, derivative); the derivative is 0 when not requested
    """
    views = hop_views(path, ledger)
    derivative = Decimal(0)

    if swap_type.is_exact_in:
        price = ONE
        hop_amount = amount
        for index, (pricing, pair) in enumerate(views):
            hop_price = pricing.spot_price_after_swap(pair, swap_type, hop_amount)
            if with_derivative:
                hop_derivative = pricing.derivative_of_spot_price(pair, swap_type, hop_amount)
                derivative = derivative * hop_price + hop_derivative
            price *= hop_price
            if index < len(views) - 1:
                hop_amount = pricing.exact_out_given_in(pair, hop_amount)
        return price, derivative

    downstream = ONE
    hop_amount = amount
    for index, (pricing, pair) in enumerate(reversed(views)):
        hop_price = pricing.spot_price_after_swap(pair, swap_type, hop_amount)
        if with_derivative:
            hop_derivative = pricing.derivative_of_spot_price(pair, swap_type, hop_amount)
            derivative = derivative * hop_price + hop_derivative * downstream * downstream
        downstream *= hop_price
        if index < len(views) - 1:
            hop_amount = pricing.exact_in_given_out(pair, hop_amount)
    return downstream, derivative


__all__ = [
    "Hop",
    "Path",
    "PathCandidate",
    "hop_views",
    "path_amount_out",
    "path_amount_in",
    "path_spot_price",
]
