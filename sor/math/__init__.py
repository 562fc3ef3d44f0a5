"""Numeric primitives for pool pricing.

- Bfp: 18-decimal fixed-point arithmetic for exact swap amounts
- precision: high-precision Decimal helpers for prices and derivatives
"""

from sor.math.fixed_point import Bfp
from sor.math.precision import bnum, scale

__all__ = ["Bfp", "bnum", "scale"]
