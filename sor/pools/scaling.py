"""Scaling and fee helpers.

Functions for moving human-unit token amounts in and out of 18-decimal
fixed-point, and for applying swap fees.
"""

from decimal import ROUND_DOWN, ROUND_UP, Decimal

from sor.math.fixed_point import Bfp
from sor.math.precision import quantize_down, quantize_up

from .errors import InvalidFeeError


def to_bfp(amount: Decimal, *, round_up: bool = False) -> Bfp:
    """Convert a human-unit amount to 18-decimal fixed-point.

    Amounts with more than 18 fractional digits are rounded in the
    requested direction.
    """
    return Bfp.from_decimal(amount, rounding=ROUND_UP if round_up else ROUND_DOWN)


def from_bfp_down(bfp: Bfp, decimals: int) -> Decimal:
    """Convert a fixed-point result to token units, rounding down.

    Used for amounts the pool pays out.
    """
    return quantize_down(bfp.to_decimal(), decimals)


def from_bfp_up(bfp: Bfp, decimals: int) -> Decimal:
    """Convert a fixed-point result to token units, rounding up.

    Used for amounts the pool requires as input.
    """
    return quantize_up(bfp.to_decimal(), decimals)


def validate_fee(swap_fee: Decimal) -> None:
    if swap_fee < 0 or swap_fee >= 1:
        raise InvalidFeeError(f"Swap fee must be in range [0, 1), got {swap_fee}")


def subtract_swap_fee_amount(amount: Bfp, swap_fee: Decimal) -> Bfp:
    """Subtract swap fee from input amount.

    Used for exact input swaps: fee is deducted before the swap.

    Raises:
        InvalidFeeError: If swap_fee is not in range [0, 1)
    """
    validate_fee(swap_fee)
    fee_amount = amount.mul_up(Bfp.from_decimal(swap_fee))
    return amount.sub(fee_amount)


def add_swap_fee_amount(amount: Bfp, swap_fee: Decimal) -> Bfp:
    """Add swap fee to the calculated input amount.

    Used for exact output swaps: ``amount / (1 - fee)``, rounded up.

    Raises:
        InvalidFeeError: If swap_fee is not in range [0, 1)
    """
    validate_fee(swap_fee)
    complement = Bfp.from_decimal(swap_fee).complement()
    return amount.div_up(complement)
