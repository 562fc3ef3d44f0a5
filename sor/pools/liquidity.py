"""Pool share (BPT) valuation at zero price impact.

Given a basket of token amounts, return how many pool shares they are
worth if they were added in exactly the pool's current proportions, i.e.
ignoring the price impact of an unbalanced join. Useful to quote the
price impact of a real join by comparing against the actual BPT out.

Balances, amounts and the share supply are raw integers in their token's
native decimals; the result is a raw share amount, rounded down.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_DOWN, Decimal

from sor.math.precision import ZERO, bnum, from_raw, high_precision

from . import stable_math
from .errors import ZeroBalanceError


def _check_lengths(**sequences: Sequence[object]) -> None:
    lengths = {name: len(seq) for name, seq in sequences.items()}
    if len(set(lengths.values())) != 1:
        raise ValueError(f"Mismatched input lengths: {lengths}")


def _to_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_DOWN))


@high_precision
def weighted_bpt_for_tokens_zero_price_impact(
    balances: Sequence[int],
    decimals: Sequence[int],
    normalized_weights: Sequence[Decimal | str],
    amounts: Sequence[int],
    bpt_total_supply: int,
) -> int:
    """Shares minted for ``amounts`` in a weighted pool, ignoring price impact.

    Each token's amount is valued at the pool's spot price, which for a
    weighted pool gives ``sum(supply * w_i * amount_i / balance_i)``.

    Args:
        balances: Raw pool balances
        decimals: Token decimals, one per balance
        normalized_weights: Token weights summing to 1 (e.g. "0.8", "0.2")
        amounts: Raw token amounts, one per balance (zero for absent tokens)
        bpt_total_supply: Raw pool share supply

    Raises:
        ValueError: If the input sequences differ in length
        ZeroBalanceError: If a balance is zero for a non-zero amount
    """
    _check_lengths(
        balances=balances, decimals=decimals, normalized_weights=normalized_weights, amounts=amounts
    )
    supply = Decimal(bpt_total_supply)
    bpt = ZERO
    for balance, token_decimals, weight, amount in zip(
        balances, decimals, normalized_weights, amounts, strict=True
    ):
        if amount == 0:
            continue
        if balance <= 0:
            raise ZeroBalanceError("Cannot value an amount against a zero balance")
        # share of the token's balance, independent of its decimals
        share = from_raw(amount, token_decimals) / from_raw(balance, token_decimals)
        bpt += supply * bnum(weight) * share
    return _to_int(bpt)


@high_precision
def stable_bpt_for_tokens_zero_price_impact(
    balances: Sequence[int],
    decimals: Sequence[int],
    amounts: Sequence[int],
    bpt_total_supply: int,
    amp: Decimal | str | int,
) -> int:
    """Shares minted for ``amounts`` in a stable pool, ignoring price impact.

    Each amount is valued by how much it would grow the invariant at the
    current balances: ``sum(amount_i * dD/dx_i) * supply / D``.

    Args:
        balances: Raw pool balances (every token of the pool)
        decimals: Token decimals, one per balance
        amounts: Raw token amounts, same length as balances
        bpt_total_supply: Raw pool share supply
        amp: Amplification parameter A (unscaled, e.g. 200)

    Raises:
        ValueError: If the input sequences differ in length
        ZeroBalanceError: If any balance is zero
    """
    _check_lengths(balances=balances, decimals=decimals, amounts=amounts)
    if any(balance <= 0 for balance in balances):
        raise ZeroBalanceError("Stable pool balances must all be positive")

    amp_value = bnum(amp)
    human_balances = [from_raw(b, d) for b, d in zip(balances, decimals, strict=True)]
    human_amounts = [from_raw(a, d) for a, d in zip(amounts, decimals, strict=True)]
    invariant = stable_math.invariant_decimal(amp_value, human_balances)

    invariant_growth = ZERO
    for index, amount in enumerate(human_amounts):
        if amount == 0:
            continue
        derivative = stable_math.invariant_derivative(
            amp_value, human_balances, invariant, index
        )
        invariant_growth += amount * derivative
    return _to_int(invariant_growth * Decimal(bpt_total_supply) / invariant)


__all__ = [
    "weighted_bpt_for_tokens_zero_price_impact",
    "stable_bpt_for_tokens_zero_price_impact",
]
