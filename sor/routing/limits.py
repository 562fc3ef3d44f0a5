"""Path liquidity limits and ranking."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

import structlog

from sor.constants import LIMIT_ROUNDING_MARGIN
from sor.errors import InsufficientLiquidity
from sor.math.precision import ONE, high_precision, quantize_down
from sor.models.types import SwapType
from sor.pools.ledger import PoolLedger

from .path import Path, PathCandidate, hop_views, path_spot_price

logger = structlog.get_logger()


@high_precision
def path_limit(path: Path, ledger: PoolLedger, swap_type: SwapType) -> Decimal:
    """Largest amount of the swap's fixed token the path can take.

    Every hop has its own limit in its own tokens. Exact in: each hop's
    input limit is carried back to the path's token_in through the hops
    before it. Exact out: each hop's output limit is carried forward to the
    path's token_out through the hops after it. The path limit is the
    smallest carried limit. A hop whose limit cannot be carried (an earlier
    or later hop runs dry first) is not the binding one.

    Multi-hop limits are shaved by a small margin so that rounding of the
    intermediate amounts never pushes a hop over its own limit.
    """
    views = hop_views(path, ledger)
    limit: Decimal | None = None

    for index, (pricing, pair) in enumerate(views):
        amount = pricing.limit_amount(pair, swap_type)
        try:
            if swap_type.is_exact_in:
                for prev_pricing, prev_pair in reversed(views[:index]):
                    amount = prev_pricing.exact_in_given_out(prev_pair, amount)
            else:
                for next_pricing, next_pair in views[index + 1 :]:
                    amount = next_pricing.exact_out_given_in(next_pair, amount)
        except InsufficientLiquidity:
            continue
        limit = amount if limit is None else min(limit, amount)

    if limit is None:
        return Decimal(0)

    if len(views) > 1:
        limit *= ONE - LIMIT_ROUNDING_MARGIN
    fixed_pair = views[0][1] if swap_type.is_exact_in else views[-1][1]
    decimals = fixed_pair.decimals_in if swap_type.is_exact_in else fixed_pair.decimals_out
    return quantize_down(limit, decimals)


class PathLimiter:
    """Computes path limits and ranks candidates by zero-amount spot price.

    The ranking only decides the order in which the optimizer tries paths;
    it never decides the final split.
    """

    def __init__(self, ledger: PoolLedger) -> None:
        self.ledger = ledger

    def candidate(self, path: Path, swap_type: SwapType) -> PathCandidate | None:
        """Build the candidate for one path, or None if the path is unusable."""
        try:
            limit = path_limit(path, self.ledger, swap_type)
            spot_price, _ = path_spot_price(
                path, self.ledger, swap_type, Decimal(0), with_derivative=False
            )
        except InsufficientLiquidity as e:
            logger.debug("path_discarded", path_id=path.id, reason=str(e))
            return None

        if limit <= 0:
            logger.debug("path_discarded", path_id=path.id, reason="zero_limit")
            return None
        return PathCandidate(path=path, limit=limit, spot_price=spot_price)

    def score(self, paths: Iterable[Path], swap_type: SwapType) -> list[PathCandidate]:
        """Usable candidates, best zero-amount spot price first (ties by path id)."""
        candidates = []
        for path in paths:
            candidate = self.candidate(path, swap_type)
            if candidate is not None:
                candidates.append(candidate)
        candidates.sort(key=lambda c: (c.spot_price, c.id))
        logger.debug("paths_ranked", candidates=len(candidates), swap_type=swap_type.value)
        return candidates


__all__ = ["PathLimiter", "path_limit"]
