"""Weighted pool math.

Exact swap amounts use 18-decimal fixed-point with pool-favouring rounding.
Spot prices and their derivatives are evaluated on Decimal; all of them are
expressed as tokenIn per tokenOut with the swap fee included.
"""

from decimal import Decimal

from sor.math.fixed_point import MAX_IN_RATIO, MAX_OUT_RATIO, ONE_18, Bfp
from sor.math.precision import ONE, high_precision

from .errors import MaxInRatioError, MaxOutRatioError, ZeroBalanceError, ZeroWeightError


def _validate(balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp) -> None:
    if weight_in.value <= 0:
        raise ZeroWeightError("weight_in must be positive")
    if weight_out.value <= 0:
        raise ZeroWeightError("weight_out must be positive")
    if balance_in.value <= 0:
        raise ZeroBalanceError("balance_in must be positive")
    if balance_out.value <= 0:
        raise ZeroBalanceError("balance_out must be positive")


def calc_out_given_in(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_in: Bfp,
) -> Bfp:
    """Calculate output amount for a given input.

    Fee should be subtracted from amount_in BEFORE calling this function.

    Formula:
        ratio = balance_in / (balance_in + amount_in)
        amount_out = balance_out * (1 - ratio^(weight_in / weight_out))

    Raises:
        MaxInRatioError: If amount_in > balance_in * 0.3
        ZeroWeightError: If weight_in or weight_out is zero
        ZeroBalanceError: If balance_in or balance_out is zero
    """
    _validate(balance_in, weight_in, balance_out, weight_out)

    max_amount_in = balance_in.mul_down(MAX_IN_RATIO)
    if amount_in.value > max_amount_in.value:
        raise MaxInRatioError(f"Input {amount_in.value} exceeds 30% of balance {balance_in.value}")

    # base rounded up so that the output rounds down
    base = balance_in.div_up(balance_in.add(amount_in))
    exponent = weight_in.div_down(weight_out)
    power = base.pow_up(exponent)
    return balance_out.mul_down(power.complement())


def calc_in_given_out(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_out: Bfp,
) -> Bfp:
    """Calculate input amount for a given output.

    Fee should be added to the result AFTER calling this function.

    Formula:
        ratio = balance_out / (balance_out - amount_out)
        amount_in = balance_in * (ratio^(weight_out / weight_in) - 1)

    Raises:
        MaxOutRatioError: If amount_out > balance_out * 0.3
        ZeroWeightError: If weight_in or weight_out is zero
        ZeroBalanceError: If a balance is zero or amount_out >= balance_out
    """
    _validate(balance_in, weight_in, balance_out, weight_out)

    max_amount_out = balance_out.mul_down(MAX_OUT_RATIO)
    if amount_out.value > max_amount_out.value:
        raise MaxOutRatioError(
            f"Output {amount_out.value} exceeds 30% of balance {balance_out.value}"
        )
    if amount_out.value >= balance_out.value:
        raise ZeroBalanceError("amount_out must be less than balance_out")

    base = balance_out.div_up(balance_out.sub(amount_out))
    # exponent rounded up for exact output, unlike calc_out_given_in
    exponent = weight_out.div_up(weight_in)
    power = base.pow_up(exponent)
    ratio = power.sub(Bfp(ONE_18))
    return balance_in.mul_up(ratio)


@high_precision
def spot_price_after_exact_in(
    balance_in: Decimal,
    weight_in: Decimal,
    balance_out: Decimal,
    weight_out: Decimal,
    swap_fee: Decimal,
    amount_in: Decimal,
) -> Decimal:
    """Spot price after selling ``amount_in``.

    SP = Bi*wo / (Bo*(1-f)*wi) * ((Bi + A*(1-f)) / Bi)^((wi+wo)/wo)
    """
    fee_complement = ONE - swap_fee
    growth = (balance_in + amount_in * fee_complement) / balance_in
    base_price = balance_in * weight_out / (balance_out * fee_complement * weight_in)
    return base_price * growth ** ((weight_in + weight_out) / weight_out)


@high_precision
def derivative_after_exact_in(
    balance_in: Decimal,
    weight_in: Decimal,
    balance_out: Decimal,
    weight_out: Decimal,
    swap_fee: Decimal,
    amount_in: Decimal,
) -> Decimal:
    """d(SP)/d(amount_in) = (wi+wo)/(Bo*wi) * ((Bi + A*(1-f)) / Bi)^(wi/wo)"""
    growth = (balance_in + amount_in * (ONE - swap_fee)) / balance_in
    return (weight_in + weight_out) / (balance_out * weight_in) * growth ** (weight_in / weight_out)


@high_precision
def spot_price_after_exact_out(
    balance_in: Decimal,
    weight_in: Decimal,
    balance_out: Decimal,
    weight_out: Decimal,
    swap_fee: Decimal,
    amount_out: Decimal,
) -> Decimal:
    """Spot price after buying ``amount_out``.

    SP = Bi*wo / (Bo*(1-f)*wi) * (Bo / (Bo - Ao))^((wi+wo)/wi)
    """
    if amount_out >= balance_out:
        raise ZeroBalanceError("amount_out must be less than balance_out")
    base_price = balance_in * weight_out / (balance_out * (ONE - swap_fee) * weight_in)
    shrink = balance_out / (balance_out - amount_out)
    return base_price * shrink ** ((weight_in + weight_out) / weight_in)


@high_precision
def derivative_after_exact_out(
    balance_in: Decimal,
    weight_in: Decimal,
    balance_out: Decimal,
    weight_out: Decimal,
    swap_fee: Decimal,
    amount_out: Decimal,
) -> Decimal:
    """d(SP)/d(amount_out) = SP * ((wi+wo)/wi) / (Bo - Ao)"""
    spot_price = spot_price_after_exact_out(
        balance_in, weight_in, balance_out, weight_out, swap_fee, amount_out
    )
    return spot_price * ((weight_in + weight_out) / weight_in) / (balance_out - amount_out)
