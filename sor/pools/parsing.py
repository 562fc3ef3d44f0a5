"""Pool snapshot parsing.

Functions to turn subgraph pool snapshots into pool dataclasses. Malformed
or unsupported pools are logged and skipped, never raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from pydantic import ValidationError

from sor.models.subgraph import SubgraphPool, SubgraphToken
from sor.models.types import PoolFilter, PoolType, normalize_address

from .types import AnyPool, MetaStablePool, PoolToken, StablePool, WeightedPool

logger = structlog.get_logger()


def _parse_decimal(raw: Any, pool_id: str, field: str) -> Decimal | None:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, TypeError):
        logger.warning("pool_invalid_number", pool_id=pool_id, field=field, raw=raw)
        return None
    if not value.is_finite():
        logger.warning("pool_invalid_number", pool_id=pool_id, field=field, raw=raw)
        return None
    return value


def _parse_fee(raw: str, pool_id: str) -> Decimal | None:
    fee = _parse_decimal(raw, pool_id, "swapFee")
    if fee is None:
        return None
    if fee < 0 or fee >= 1:
        logger.warning("pool_invalid_fee", pool_id=pool_id, raw_fee=raw)
        return None
    return fee


def _parse_tokens(pool: SubgraphPool) -> list[PoolToken] | None:
    tokens: list[PoolToken] = []
    for token in pool.tokens:
        parsed = _parse_token(token, pool.id)
        if parsed is None:
            return None
        tokens.append(parsed)
    return tokens


def _parse_token(token: SubgraphToken, pool_id: str) -> PoolToken | None:
    balance = _parse_decimal(token.balance, pool_id, "balance")
    if balance is None:
        return None
    if balance <= 0:
        logger.debug("pool_zero_balance", pool_id=pool_id, token=token.address)
        return None

    price_rate = _parse_decimal(token.price_rate, pool_id, "priceRate")
    if price_rate is None or price_rate <= 0:
        return None

    weight = None
    if token.weight is not None:
        weight = _parse_decimal(token.weight, pool_id, "weight")
        if weight is None:
            return None

    return PoolToken(
        address=normalize_address(token.address),
        balance=balance,
        decimals=token.decimals,
        weight=weight,
        price_rate=price_rate,
    )


def _normalize_weights(tokens: list[PoolToken], pool: SubgraphPool) -> list[PoolToken] | None:
    """Scale weights so they sum to 1 (older snapshots report raw weights)."""
    if any(t.weight is None or t.weight <= 0 for t in tokens):
        logger.warning("weighted_pool_missing_weight", pool_id=pool.id)
        return None

    total = None
    if pool.total_weight is not None:
        total = _parse_decimal(pool.total_weight, pool.id, "totalWeight")
    if not total:
        total = sum((t.weight for t in tokens if t.weight is not None), Decimal(0))
    return [
        PoolToken(
            address=t.address,
            balance=t.balance,
            decimals=t.decimals,
            weight=t.weight / total if t.weight is not None else None,
            price_rate=t.price_rate,
        )
        for t in tokens
    ]


def parse_weighted_pool(pool: SubgraphPool) -> WeightedPool | None:
    """Parse a Weighted or LiquidityBootstrapping snapshot into WeightedPool.

    Returns:
        WeightedPool, or None if the snapshot is not a usable weighted pool
    """
    if pool.pool_type not in (PoolType.WEIGHTED.value, PoolType.LIQUIDITY_BOOTSTRAPPING.value):
        return None

    if not pool.swap_enabled:
        logger.debug("weighted_pool_swaps_disabled", pool_id=pool.id)
        return None

    fee = _parse_fee(pool.swap_fee, pool.id)
    tokens = _parse_tokens(pool)
    if fee is None or tokens is None or len(tokens) < 2:
        return None

    normalized = _normalize_weights(tokens, pool)
    if normalized is None:
        return None

    return WeightedPool(
        id=pool.id,
        address=normalize_address(pool.address),
        tokens=tuple(normalized),
        swap_fee=fee,
        total_shares=_parse_decimal(pool.total_shares, pool.id, "totalShares") or Decimal(0),
        pool_type=PoolType(pool.pool_type),
        swap_enabled=pool.swap_enabled,
    )


def parse_stable_pool(pool: SubgraphPool) -> StablePool | None:
    """Parse a Stable or MetaStable snapshot.

    Returns:
        StablePool (MetaStablePool for meta-stable snapshots), or None if
        the snapshot is not a usable stable pool
    """
    if pool.pool_type not in (PoolType.STABLE.value, PoolType.META_STABLE.value):
        return None

    if pool.amp is None:
        logger.warning("stable_pool_missing_amp", pool_id=pool.id)
        return None
    amp = _parse_decimal(pool.amp, pool.id, "amp")
    if amp is None or amp <= 0:
        return None

    fee = _parse_fee(pool.swap_fee, pool.id)
    tokens = _parse_tokens(pool)
    if fee is None or tokens is None or len(tokens) < 2:
        return None

    cls = MetaStablePool if pool.pool_type == PoolType.META_STABLE.value else StablePool
    return cls(
        id=pool.id,
        address=normalize_address(pool.address),
        tokens=tuple(tokens),
        swap_fee=fee,
        amp=amp,
        total_shares=_parse_decimal(pool.total_shares, pool.id, "totalShares") or Decimal(0),
        swap_enabled=pool.swap_enabled,
    )


def parse_pool(pool: SubgraphPool) -> AnyPool | None:
    """Parse one snapshot into a pool dataclass, or None if unsupported."""
    if pool.pool_type in (PoolType.WEIGHTED.value, PoolType.LIQUIDITY_BOOTSTRAPPING.value):
        return parse_weighted_pool(pool)
    if pool.pool_type in (PoolType.STABLE.value, PoolType.META_STABLE.value):
        return parse_stable_pool(pool)

    logger.info("unsupported_pool_type", pool_id=pool.id, pool_type=pool.pool_type)
    return None


def parse_pools(
    pools: Iterable[SubgraphPool | dict[str, Any]],
    pool_filter: PoolFilter = PoolFilter.ALL,
) -> list[AnyPool]:
    """Parse a pool snapshot, keeping only pools accepted by ``pool_filter``.

    Raw dictionaries are validated into SubgraphPool first; invalid entries
    are logged and skipped.
    """
    parsed: list[AnyPool] = []
    for raw in pools:
        if isinstance(raw, SubgraphPool):
            snapshot = raw
        else:
            try:
                snapshot = SubgraphPool.model_validate(raw)
            except ValidationError as e:
                logger.warning("pool_snapshot_invalid", pool_id=raw.get("id"), error=str(e))
                continue

        pool = parse_pool(snapshot)
        if pool is None:
            continue
        if not pool_filter.accepts(pool.pool_type):
            continue
        parsed.append(pool)

    logger.debug("pools_parsed", total=len(parsed), filter=pool_filter.value)
    return parsed


__all__ = ["parse_pool", "parse_pools", "parse_weighted_pool", "parse_stable_pool"]
