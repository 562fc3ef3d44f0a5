"""Swap gas cost expressed in a token.

Routing compares plans net of gas, so the gas spent on each extra path
must be priced in the token the comparison is made in. The calculator
keeps a per-chain cache of native-asset prices handed to it by the caller;
it never looks prices up itself. Unknown prices cost nothing, which lets
routing fall back to comparing gross amounts.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

import structlog

from sor.constants import DEFAULT_SWAP_GAS, NATIVE_ASSET_DECIMALS
from sor.math.precision import ZERO, bnum, high_precision, quantize_down
from sor.models.types import normalize_address

logger = structlog.get_logger()


@runtime_checkable
class GasCostFn(Protocol):
    """Prices ``gas_units`` at ``gas_price`` (wei per gas) in human units of ``token``."""

    def __call__(self, token: str, gas_price: int, gas_units: int) -> Decimal: ...


class SwapCostCalculator:
    """Converts gas costs into token amounts using cached native-asset prices.

    Attributes:
        chain_id: Chain the cached prices belong to
    """

    def __init__(self, chain_id: int = 1) -> None:
        self.chain_id = chain_id
        # token -> price of one native asset, in human units of the token
        self._native_price_cache: dict[str, Decimal] = {}
        self._token_decimals_cache: dict[str, int] = {}

    def set_chain_id(self, chain_id: int) -> None:
        """Switch chains. Cached prices belong to the old chain and are dropped."""
        if chain_id != self.chain_id:
            self._native_price_cache.clear()
            self._token_decimals_cache.clear()
        self.chain_id = chain_id

    def set_native_asset_price_in_token(self, token: str, price: str | Decimal) -> None:
        """Cache how much of ``token`` one unit of the native asset is worth.

        Raises:
            ValueError: If the price is negative
        """
        value = bnum(price)
        if value < 0:
            raise ValueError(f"Native asset price must be non-negative, got {price}")
        self._native_price_cache[normalize_address(token)] = value

    def get_native_asset_price_in_token(self, token: str) -> Decimal:
        """Cached native-asset price in ``token``, or 0 when unknown."""
        price = self._native_price_cache.get(normalize_address(token))
        if price is None:
            logger.debug("native_price_unknown", token=token, chain_id=self.chain_id)
            return ZERO
        return price

    def set_token_decimals(self, token: str, decimals: int) -> None:
        """Cache token decimals so costs can be rounded to the token's precision."""
        self._token_decimals_cache[normalize_address(token)] = decimals

    def get_token_decimals(self, token: str) -> int | None:
        return self._token_decimals_cache.get(normalize_address(token))

    @high_precision
    def convert_gas_cost_to_token(
        self,
        token: str,
        gas_price: int,
        gas_units: int = DEFAULT_SWAP_GAS,
    ) -> Decimal:
        """Cost of spending ``gas_units`` at ``gas_price`` wei, in units of ``token``.

        Returns 0 when the native-asset price in ``token`` is unknown.
        """
        if gas_price < 0 or gas_units < 0:
            raise ValueError("gas_price and gas_units must be non-negative")
        price = self.get_native_asset_price_in_token(token)
        if price == 0 or gas_price == 0 or gas_units == 0:
            return ZERO

        native_cost = (Decimal(gas_price) * gas_units).scaleb(-NATIVE_ASSET_DECIMALS)
        cost = native_cost * price
        decimals = self.get_token_decimals(token)
        return quantize_down(cost, decimals) if decimals is not None else cost

    def __call__(self, token: str, gas_price: int, gas_units: int) -> Decimal:
        return self.convert_gas_cost_to_token(token, gas_price, gas_units)


__all__ = ["GasCostFn", "SwapCostCalculator"]
