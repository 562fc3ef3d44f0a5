"""High-precision Decimal helpers for price and amount calculations.

Marginal prices, derivatives and amount splits are computed with Decimal
under a 78-digit context. Token amounts are quantized to their token's
decimals at the boundaries, rounding in the pool's favour.
"""

from __future__ import annotations

import decimal
import functools
from collections.abc import Callable
from decimal import ROUND_DOWN, ROUND_UP, Decimal
from typing import ParamSpec, TypeVar

# 78 digits of precision, enough for uint256 values (up to ~10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)

ZERO = Decimal(0)
ONE = Decimal(1)

P = ParamSpec("P")
R = TypeVar("R")


def high_precision(func: Callable[P, R]) -> Callable[P, R]:
    """Run ``func`` inside the high-precision Decimal context."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return func(*args, **kwargs)

    return wrapper


def bnum(value: str | int | Decimal) -> Decimal:
    """Convert a string, int or Decimal into a Decimal.

    Floats are rejected: their binary representation would leak rounding
    error into amounts.
    """
    if isinstance(value, float):
        raise TypeError("bnum does not accept floats, pass a string instead")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


@high_precision
def scale(amount: Decimal, decimal_places: int) -> Decimal:
    """Shift ``amount`` by ``decimal_places`` powers of ten.

    ``scale(Decimal("1.5"), 6)`` is ``1500000`` and ``scale(x, -6)`` undoes it.
    """
    return amount.scaleb(decimal_places)


@high_precision
def quantize_down(amount: Decimal, decimals: int) -> Decimal:
    """Round ``amount`` down to ``decimals`` fractional digits."""
    return amount.quantize(ONE.scaleb(-decimals), rounding=ROUND_DOWN)


@high_precision
def quantize_up(amount: Decimal, decimals: int) -> Decimal:
    """Round ``amount`` up to ``decimals`` fractional digits."""
    return amount.quantize(ONE.scaleb(-decimals), rounding=ROUND_UP)


@high_precision
def to_raw(amount: Decimal, decimals: int, *, round_up: bool = False) -> int:
    """Convert a human-unit amount into integer token units."""
    rounding = ROUND_UP if round_up else ROUND_DOWN
    return int(amount.scaleb(decimals).to_integral_value(rounding=rounding))


@high_precision
def from_raw(raw: int, decimals: int) -> Decimal:
    """Convert integer token units into a human-unit amount."""
    return Decimal(raw).scaleb(-decimals)


@high_precision
def relative_difference(a: Decimal, b: Decimal) -> Decimal:
    """Return ``|a - b| / max(|a|, |b|)``, or 0 when both are zero."""
    denominator = max(abs(a), abs(b))
    if denominator == 0:
        return ZERO
    return abs(a - b) / denominator


__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "ZERO",
    "ONE",
    "high_precision",
    "bnum",
    "scale",
    "quantize_down",
    "quantize_up",
    "to_raw",
    "from_raw",
    "relative_difference",
]
