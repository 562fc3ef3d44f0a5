"""Pricing model lookup with singledispatch on the pool's concrete type."""

from __future__ import annotations

from functools import singledispatch
from typing import Any

from .base import PoolPricing
from .stable import MetaStablePricing, StablePricing
from .types import MetaStablePool, StablePool, WeightedPool
from .weighted import WeightedPricing

# Pricing models are stateless, one instance per pool family is enough
_WEIGHTED = WeightedPricing()
_STABLE = StablePricing()
_META_STABLE = MetaStablePricing()


@singledispatch
def pricing_for(pool: Any) -> PoolPricing:
    """Return the pricing model for ``pool``.

    Raises:
        TypeError: If the pool type has no pricing model
    """
    raise TypeError(f"No pricing model for pool type: {type(pool).__name__}")


@pricing_for.register
def _(pool: WeightedPool) -> PoolPricing:
    return _WEIGHTED


@pricing_for.register
def _(pool: StablePool) -> PoolPricing:
    return _STABLE


@pricing_for.register
def _(pool: MetaStablePool) -> PoolPricing:
    return _META_STABLE


__all__ = ["pricing_for"]
