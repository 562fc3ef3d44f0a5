"""Pool math error classes.

Every pricing-formula domain error is a pool-level ``InsufficientLiquidity``
so that callers drop the pool (or path) instead of handling numeric errors.
"""

from sor.errors import InsufficientLiquidity


class PoolMathError(InsufficientLiquidity):
    """Base error for pool pricing operations."""

    pass


class MaxInRatioError(PoolMathError):
    """Input amount exceeds 30% of balance_in."""

    pass


class MaxOutRatioError(PoolMathError):
    """Output amount exceeds the pool's max out ratio of balance_out."""

    pass


class InvalidFeeError(PoolMathError):
    """Swap fee must be in range [0, 1)."""

    pass


class ZeroWeightError(PoolMathError):
    """Token weight must be positive."""

    pass


class ZeroBalanceError(PoolMathError):
    """Token balance must be positive for swaps."""

    pass


class TokenNotInPoolError(PoolMathError):
    """The pool does not hold the requested token (or it is a self-swap)."""

    pass


class StableInvariantDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableGetBalanceDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable balance Y did not converge."""

    pass


class SwapsDisabledError(PoolMathError):
    """Swaps are paused on the pool (liquidity bootstrapping pools)."""

    pass
