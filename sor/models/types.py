"""Shared type definitions for routing requests and results."""

from enum import Enum
from typing import Annotated

from pydantic import Field

# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]


class SwapType(str, Enum):
    """Which side of the swap is fixed."""

    EXACT_IN = "exactIn"
    EXACT_OUT = "exactOut"

    @property
    def is_exact_in(self) -> bool:
        return self is SwapType.EXACT_IN


class PoolType(str, Enum):
    """Bonding-curve family of a pool, as tagged by the subgraph."""

    WEIGHTED = "Weighted"
    STABLE = "Stable"
    META_STABLE = "MetaStable"
    LIQUIDITY_BOOTSTRAPPING = "LiquidityBootstrapping"


class PoolFilter(str, Enum):
    """Restricts which pool types take part in a route."""

    ALL = "All"
    WEIGHTED = "Weighted"
    STABLE = "Stable"
    META_STABLE = "MetaStable"
    LBP = "LiquidityBootstrapping"

    def accepts(self, pool_type: PoolType) -> bool:
        return self is PoolFilter.ALL or self.value == pool_type.value


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x") or len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False
