"""Pool snapshot and pair view dataclasses.

Pools are immutable values. A swap never mutates a pool; ``with_swap``
returns a new pool carrying the post-swap balances. Pair views are derived
per (pool, token_in, token_out) on demand and never cached.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeAlias, TypeVar

from sor.models.types import PoolType, normalize_address

_P = TypeVar("_P", bound="_TokenLookup")


@dataclass(frozen=True)
class PoolToken:
    """One token held by a pool.

    Attributes:
        address: Token address (lowercase)
        balance: Pool balance in human units
        decimals: Token decimals
        weight: Normalized weight (weighted pools only)
        price_rate: Rate applied to balances (meta-stable pools only)
    """

    address: str
    balance: Decimal
    decimals: int
    weight: Decimal | None = None
    price_rate: Decimal = Decimal(1)


class _TokenLookup:
    """Token lookups and balance updates shared by all pool variants."""

    id: str
    tokens: tuple[PoolToken, ...]

    def token_index(self, token: str) -> int | None:
        token_norm = normalize_address(token)
        for i, pool_token in enumerate(self.tokens):
            if pool_token.address == token_norm:
                return i
        return None

    def get_token(self, token: str) -> PoolToken | None:
        index = self.token_index(token)
        return None if index is None else self.tokens[index]

    @property
    def tokens_list(self) -> list[str]:
        return [t.address for t in self.tokens]

    def with_swap(
        self: _P,
        token_in: str,
        amount_in: Decimal,
        token_out: str,
        amount_out: Decimal,
    ) -> _P:
        """Return a copy of the pool with a swap applied to its balances."""
        index_in = self.token_index(token_in)
        index_out = self.token_index(token_out)
        if index_in is None or index_out is None:
            raise KeyError(f"Pool {self.id} does not hold {token_in} and {token_out}")

        tokens = list(self.tokens)
        tokens[index_in] = dataclasses.replace(
            tokens[index_in], balance=tokens[index_in].balance + amount_in
        )
        tokens[index_out] = dataclasses.replace(
            tokens[index_out], balance=tokens[index_out].balance - amount_out
        )
        return dataclasses.replace(self, tokens=tuple(tokens))  # type: ignore[type-var]


@dataclass(frozen=True)
class WeightedPool(_TokenLookup):
    """Weighted product pool (also used for liquidity bootstrapping pools).

    Attributes:
        id: Pool id (used in batch swaps)
        address: Pool contract address
        tokens: Token balances with normalized weights
        swap_fee: Swap fee as decimal (e.g., 0.003 for 0.3%)
        total_shares: Pool share (BPT) supply
        pool_type: WEIGHTED or LIQUIDITY_BOOTSTRAPPING
        swap_enabled: False for paused bootstrapping pools
    """

    id: str
    address: str
    tokens: tuple[PoolToken, ...]
    swap_fee: Decimal
    total_shares: Decimal = Decimal(0)
    pool_type: PoolType = PoolType.WEIGHTED
    swap_enabled: bool = True


@dataclass(frozen=True)
class StablePool(_TokenLookup):
    """StableSwap invariant pool.

    Attributes:
        amp: Unscaled amplification parameter A (e.g., 200). The math
            functions multiply by AMP_PRECISION internally.
    """

    id: str
    address: str
    tokens: tuple[PoolToken, ...]
    swap_fee: Decimal
    amp: Decimal
    total_shares: Decimal = Decimal(0)
    pool_type: PoolType = PoolType.STABLE
    swap_enabled: bool = True


@dataclass(frozen=True)
class MetaStablePool(StablePool):
    """Stable pool whose balances are adjusted by per-token price rates."""

    pool_type: PoolType = PoolType.META_STABLE


AnyPool: TypeAlias = WeightedPool | StablePool | MetaStablePool


@dataclass(frozen=True)
class WeightedPairView:
    """Projection of a weighted pool onto one token pair."""

    pool_id: str
    pool_type: PoolType
    token_in: str
    token_out: str
    decimals_in: int
    decimals_out: int
    balance_in: Decimal
    balance_out: Decimal
    weight_in: Decimal
    weight_out: Decimal
    swap_fee: Decimal


@dataclass(frozen=True)
class StablePairView:
    """Projection of a stable pool onto one token pair.

    The invariant involves every balance of the pool, so all of them are
    carried. ``balances`` are multiplied by their price rates; plain stable
    pools have all rates equal to 1.
    """

    pool_id: str
    pool_type: PoolType
    token_in: str
    token_out: str
    decimals_in: int
    decimals_out: int
    balances: tuple[Decimal, ...]
    index_in: int
    index_out: int
    amp: Decimal
    swap_fee: Decimal
    rate_in: Decimal = Decimal(1)
    rate_out: Decimal = Decimal(1)

    @property
    def balance_in(self) -> Decimal:
        return self.balances[self.index_in] / self.rate_in

    @property
    def balance_out(self) -> Decimal:
        return self.balances[self.index_out] / self.rate_out


PairView: TypeAlias = WeightedPairView | StablePairView

__all__ = [
    "PoolToken",
    "WeightedPool",
    "StablePool",
    "MetaStablePool",
    "AnyPool",
    "WeightedPairView",
    "StablePairView",
    "PairView",
]
