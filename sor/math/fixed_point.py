"""Balancer-style 18-decimal fixed-point (Bfp) arithmetic.

All values are stored as integers scaled by 10^18. Every operation has an
explicit rounding direction so swap results always round in the pool's
favour: outputs down, required inputs up.

Powers with fractional exponents are evaluated on Decimal under a 78-digit
context and then widened by ``MAX_POW_RELATIVE_ERROR`` in the requested
rounding direction, mirroring the on-chain error bound.
"""

from __future__ import annotations

import decimal
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import ClassVar

from sor.math.precision import DECIMAL_HIGH_PREC_CONTEXT

__all__ = [
    "Bfp",
    "pow_raw",
    "ONE_18",
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
    "AMP_PRECISION",
]

ONE_18 = 10**18


def pow_raw(x: int, y: int) -> int:
    """Compute x^y for 18-decimal fixed-point operands, truncated.

    Args:
        x: Base (non-negative, 18-decimal fixed-point)
        y: Exponent (non-negative, 18-decimal fixed-point)

    Returns:
        x^y as 18-decimal fixed-point, rounded toward zero

    Raises:
        ValueError: If either operand is negative
    """
    if x < 0 or y < 0:
        raise ValueError(f"pow_raw requires non-negative operands, got {x}, {y}")
    if y == 0:
        return ONE_18
    if x == 0:
        return 0

    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        base = Decimal(x).scaleb(-18)
        exponent = Decimal(y).scaleb(-18)
        result = (base**exponent).scaleb(18)
        return int(result.to_integral_value(rounding=ROUND_DOWN))


class Bfp:
    """18-decimal fixed-point number stored as int.

    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = ONE_18
    MAX_POW_RELATIVE_ERROR: ClassVar[int] = 10000  # 10^-14 relative error

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Bfp:
        """Create from a raw value already scaled to 18 decimals."""
        return cls(wei)

    @classmethod
    def from_decimal(cls, d: Decimal, rounding: str = ROUND_HALF_UP) -> Bfp:
        """Create from a Decimal, scaling by 10^18.

        Requires non-negative input (amounts and balances are unsigned).
        """
        if d < 0:
            raise ValueError(f"Bfp.from_decimal requires non-negative input, got {d}")
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            scaled = d.scaleb(18).to_integral_value(rounding=rounding)
        return cls(int(scaled))

    @classmethod
    def from_int(cls, i: int) -> Bfp:
        """Create from an integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    def to_decimal(self) -> Decimal:
        """Convert to an exact Decimal."""
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return Decimal(self.value).scaleb(-18)

    def mul_down(self, other: Bfp) -> Bfp:
        return Bfp((self.value * other.value) // self.ONE)

    def mul_up(self, other: Bfp) -> Bfp:
        product = self.value * other.value
        if product == 0:
            return Bfp(0)
        return Bfp((product - 1) // self.ONE + 1)

    def div_down(self, other: Bfp) -> Bfp:
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        return Bfp((self.value * self.ONE) // other.value)

    def div_up(self, other: Bfp) -> Bfp:
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        numerator = self.value * self.ONE
        if numerator == 0:
            return Bfp(0)
        return Bfp((numerator - 1) // other.value + 1)

    def complement(self) -> Bfp:
        """Return 1 - self, clamped to 0."""
        return Bfp(max(0, self.ONE - self.value))

    def add(self, other: Bfp) -> Bfp:
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Subtract other from self, clamped to 0."""
        return Bfp(max(0, self.value - other.value))

    def _max_pow_error(self, raw: int) -> int:
        product = raw * self.MAX_POW_RELATIVE_ERROR
        mul_up_result = ((product - 1) // self.ONE + 1) if product > 0 else 0
        return mul_up_result + 1

    def pow_down(self, exp: Bfp) -> Bfp:
        """Compute self^exp, rounded down by the power error bound."""
        raw = pow_raw(self.value, exp.value)
        max_error = self._max_pow_error(raw)
        if raw < max_error:
            return Bfp(0)
        return Bfp(raw - max_error)

    def pow_up(self, exp: Bfp) -> Bfp:
        """Compute self^exp, rounded up by the power error bound.

        Exponents of exactly 1 and 2 are evaluated directly; they are the
        common case for 50/50 and 80/20 pools and need no error margin.
        """
        if exp.value == self.ONE:
            return Bfp(self.value)
        if exp.value == 2 * self.ONE:
            return self.mul_up(self)
        raw = pow_raw(self.value, exp.value)
        return Bfp(raw + self._max_pow_error(raw))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())


MAX_IN_RATIO = Bfp.from_wei(3 * 10**17)  # 0.3 (30%)
MAX_OUT_RATIO = Bfp.from_wei(3 * 10**17)  # 0.3 (30%)
AMP_PRECISION = 1000
