"""Stable pool math.

Core math functions for StableSwap (Curve-style) pools. The invariant and
token balances are solved with Newton-Raphson on 18-decimal integers;
spot prices are derived from the invariant's partial derivatives on
Decimal.

The amplification parameter passed to the integer functions is already
multiplied by AMP_PRECISION.
"""

from collections.abc import Sequence
from decimal import Decimal

from sor.math.fixed_point import AMP_PRECISION, Bfp
from sor.math.precision import ONE, high_precision

from .errors import StableGetBalanceDidNotConverge, StableInvariantDidNotConverge, ZeroBalanceError

# Maximum iterations for Newton-Raphson convergence
_STABLE_MAX_ITERATIONS = 255


def scaled_amp(amp: Decimal) -> int:
    """Amplification parameter multiplied by AMP_PRECISION."""
    return int(amp * AMP_PRECISION)


def calculate_invariant(amp: int, balances: Sequence[Bfp]) -> Bfp:
    """Calculate StableSwap invariant D using Newton-Raphson iteration.

    Uses the A*n parameterization (not A*n^n); the n^n factor comes in
    through the iterative d_p calculation.

    Raises:
        StableInvariantDidNotConverge: If iteration doesn't converge
        ZeroBalanceError: If any balance is zero
    """
    n_coins = len(balances)
    if n_coins == 0:
        return Bfp(0)

    for i, bal in enumerate(balances):
        if bal.value <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    sum_balances = sum(b.value for b in balances)
    d_prev = sum_balances
    amp_times_n = amp * n_coins

    for _ in range(_STABLE_MAX_ITERATIONS):
        # d_p = D^(n+1) / (n^n * prod(balances))
        d_p = d_prev
        for bal in balances:
            d_p = (d_p * d_prev) // (n_coins * bal.value)

        numerator = ((amp_times_n * sum_balances) // AMP_PRECISION + d_p * n_coins) * d_prev
        denominator = ((amp_times_n - AMP_PRECISION) * d_prev) // AMP_PRECISION + (
            n_coins + 1
        ) * d_p
        d_new = numerator // denominator

        if abs(d_new - d_prev) <= 1:
            return Bfp(d_new)
        d_prev = d_new

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


def get_token_balance_given_invariant_and_all_other_balances(
    amp: int,
    balances: Sequence[Bfp],
    invariant: Bfp,
    token_index: int,
) -> Bfp:
    """Solve for balances[token_index] given D and all other balances.

    Raises:
        StableGetBalanceDidNotConverge: If iteration doesn't converge
        IndexError: If token_index is out of range
    """
    n_coins = len(balances)
    if token_index < 0 or token_index >= n_coins:
        raise IndexError(f"token_index {token_index} out of range for {n_coins} tokens")

    d = invariant.value
    amp_times_total = amp * n_coins

    sum_balances = balances[0].value
    p_d = balances[0].value * n_coins
    for j in range(1, n_coins):
        p_d = (p_d * balances[j].value * n_coins) // d
        sum_balances += balances[j].value

    sum_others = sum_balances - balances[token_index].value
    inv2 = d * d

    amp_times_p_d = amp_times_total * p_d
    if amp_times_p_d == 0:
        raise StableGetBalanceDidNotConverge("amp_times_p_d is zero")
    c = _div_up(inv2, amp_times_p_d) * AMP_PRECISION * balances[token_index].value
    b = sum_others + (d // amp_times_total) * AMP_PRECISION

    token_balance = _div_up(inv2 + c, d + b)
    for _ in range(_STABLE_MAX_ITERATIONS):
        prev_token_balance = token_balance

        denominator = 2 * token_balance + b - d
        if denominator <= 0:
            raise StableGetBalanceDidNotConverge("Denominator became non-positive")
        token_balance = _div_up(token_balance * token_balance + c, denominator)

        if abs(token_balance - prev_token_balance) <= 1:
            return Bfp(token_balance)

    raise StableGetBalanceDidNotConverge(
        f"Stable get_balance did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


def _div_up(a: int, b: int) -> int:
    return (a + b - 1) // b


def _check_indices(n_coins: int, token_index_in: int, token_index_out: int) -> None:
    if token_index_in < 0 or token_index_in >= n_coins:
        raise IndexError(f"token_index_in {token_index_in} out of range for {n_coins} tokens")
    if token_index_out < 0 or token_index_out >= n_coins:
        raise IndexError(f"token_index_out {token_index_out} out of range for {n_coins} tokens")
    if token_index_in == token_index_out:
        raise ValueError("Cannot swap token with itself")


def stable_calc_out_given_in(
    amp: int,
    balances: Sequence[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_in: Bfp,
) -> Bfp:
    """Calculate output amount for a given input in a stable pool.

    Fee should be subtracted from amount_in BEFORE calling this function.
    The result carries 1 wei of rounding protection.
    """
    _check_indices(len(balances), token_index_in, token_index_out)

    invariant = calculate_invariant(amp, balances)
    new_balances = list(balances)
    new_balances[token_index_in] = Bfp(balances[token_index_in].value + amount_in.value)

    new_balance_out = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_out
    )
    old_balance_out = balances[token_index_out].value
    if new_balance_out.value >= old_balance_out:
        return Bfp(0)
    return Bfp(old_balance_out - new_balance_out.value - 1)


def stable_calc_in_given_out(
    amp: int,
    balances: Sequence[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_out: Bfp,
) -> Bfp:
    """Calculate input amount for a given output in a stable pool.

    Fee should be added to the result AFTER calling this function.

    Raises:
        ZeroBalanceError: If amount_out >= balance_out
    """
    _check_indices(len(balances), token_index_in, token_index_out)
    if amount_out.value >= balances[token_index_out].value:
        raise ZeroBalanceError("amount_out must be less than balance_out")

    invariant = calculate_invariant(amp, balances)
    new_balances = list(balances)
    new_balances[token_index_out] = Bfp(balances[token_index_out].value - amount_out.value)

    new_balance_in = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_in
    )
    return Bfp(new_balance_in.value - balances[token_index_in].value + 1)


def invariant_decimal(amp: Decimal, balances: Sequence[Decimal]) -> Decimal:
    """Invariant D for human-unit balances."""
    bfp_balances = [Bfp.from_decimal(b) for b in balances]
    return calculate_invariant(scaled_amp(amp), bfp_balances).to_decimal()


@high_precision
def invariant_partial(
    amp: Decimal, balances: Sequence[Decimal], invariant: Decimal, index: int
) -> Decimal:
    """Partial derivative of the invariant function with respect to balances[index].

    For F = Ann*S + D - Ann*D - D^(n+1) / (n^n * P):
        dF/dx_i = Ann + D^(n+1) / (n^n * P * x_i)
    """
    n = len(balances)
    ann = amp * n
    product = ONE
    for balance in balances:
        product *= balance
    return ann + invariant ** (n + 1) / (Decimal(n) ** n * product * balances[index])


@high_precision
def spot_price(
    amp: Decimal,
    balances: Sequence[Decimal],
    invariant: Decimal,
    index_in: int,
    index_out: int,
    swap_fee: Decimal,
) -> Decimal:
    """Marginal price of token_out in token_in at ``balances``, fee included.

    SP = (dF/dx_out) / (dF/dx_in) / (1 - fee)
    """
    if balances[index_in] <= 0 or balances[index_out] <= 0:
        raise ZeroBalanceError("Stable spot price needs positive balances")
    partial_out = invariant_partial(amp, balances, invariant, index_out)
    partial_in = invariant_partial(amp, balances, invariant, index_in)
    return partial_out / partial_in / (ONE - swap_fee)


@high_precision
def invariant_derivative(
    amp: Decimal, balances: Sequence[Decimal], invariant: Decimal, index: int
) -> Decimal:
    """dD/dx_i holding every other balance fixed.

    dD/dx_i = (Ann + D^(n+1) / (n^n P x_i)) / (Ann - 1 + (n+1) D^n / (n^n P))
    """
    n = len(balances)
    ann = amp * n
    product = ONE
    for balance in balances:
        product *= balance
    n_pow_n = Decimal(n) ** n
    numerator = invariant_partial(amp, balances, invariant, index)
    denominator = ann - ONE + (n + 1) * invariant**n / (n_pow_n * product)
    return numerator / denominator
