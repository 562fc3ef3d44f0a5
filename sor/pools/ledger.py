"""Per-request pool balances.

A ledger is an immutable overlay over the pool snapshot. Applying a swap
returns a new ledger; the snapshot and every earlier ledger are untouched,
so the optimizer can evaluate candidate allocations side by side.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal

from .types import AnyPool


class PoolLedger(Mapping[str, AnyPool]):
    """Read-only mapping of pool id to the pool's current state."""

    __slots__ = ("_base", "_updates")

    def __init__(
        self,
        pools: Iterable[AnyPool] | Mapping[str, AnyPool],
        _updates: Mapping[str, AnyPool] | None = None,
    ) -> None:
        if isinstance(pools, Mapping):
            self._base: Mapping[str, AnyPool] = pools
        else:
            self._base = {pool.id: pool for pool in pools}
        self._updates: dict[str, AnyPool] = dict(_updates or {})

    def __getitem__(self, pool_id: str) -> AnyPool:
        if pool_id in self._updates:
            return self._updates[pool_id]
        return self._base[pool_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._base)

    def __len__(self) -> int:
        return len(self._base)

    @property
    def touched(self) -> frozenset[str]:
        """Ids of pools whose balances differ from the snapshot."""
        return frozenset(self._updates)

    def with_swap(
        self,
        pool_id: str,
        token_in: str,
        amount_in: Decimal,
        token_out: str,
        amount_out: Decimal,
    ) -> PoolLedger:
        """Return a ledger where ``pool_id`` has received amount_in and paid amount_out."""
        updated = self[pool_id].with_swap(token_in, amount_in, token_out, amount_out)
        updates = dict(self._updates)
        updates[pool_id] = updated
        return PoolLedger(self._base, updates)

    def __repr__(self) -> str:
        return f"PoolLedger(pools={len(self)}, touched={sorted(self._updates)})"


__all__ = ["PoolLedger"]
