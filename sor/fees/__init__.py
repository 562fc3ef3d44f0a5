"""Gas cost of swaps, expressed in tokens."""

from sor.fees.calculator import GasCostFn, SwapCostCalculator

__all__ = ["GasCostFn", "SwapCostCalculator"]
