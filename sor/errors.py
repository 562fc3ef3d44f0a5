"""Routing error classes.

``InsufficientLiquidity`` is recovered locally (the offending path is
dropped); the other kinds are surfaced to the caller of ``route``.
"""


class RoutingError(Exception):
    """Base error for routing operations."""

    pass


class InsufficientLiquidity(RoutingError):
    """A single pool or hop cannot support the requested swap."""

    pass


class AmountExceedsLiquidity(RoutingError):
    """No combination of up to max_pools candidate paths can fill the amount."""

    def __init__(self, requested: object, available: object) -> None:
        super().__init__(f"Requested amount {requested} exceeds available liquidity {available}")
        self.requested = requested
        self.available = available


class OptimizationDidNotConverge(RoutingError):
    """Marginal-price equalization exceeded its iteration limit."""

    def __init__(self, iterations: int, spread: object) -> None:
        super().__init__(
            f"Equalization did not converge after {iterations} iterations (spread {spread})"
        )
        self.iterations = iterations
        self.spread = spread


class NoPathFound(RoutingError):
    """No pool path connects token_in to token_out."""

    pass


__all__ = [
    "RoutingError",
    "InsufficientLiquidity",
    "AmountExceedsLiquidity",
    "OptimizationDidNotConverge",
    "NoPathFound",
]
