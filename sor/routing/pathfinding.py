"""Pool graph and candidate path enumeration.

The graph connects tokens through the pools that hold them. Candidate
paths are built in two steps: breadth-first enumeration of token
sequences (direct first, then one intermediate, then two), followed by
every combination of pools along each sequence.
"""

from __future__ import annotations

import itertools
from collections import deque
from collections.abc import Iterable
from decimal import Decimal

import structlog

from sor.constants import DEFAULT_MAX_CANDIDATE_PATHS, DEFAULT_MAX_HOPS
from sor.errors import InsufficientLiquidity, NoPathFound
from sor.math.precision import high_precision
from sor.models.types import SwapType, normalize_address
from sor.pools.ledger import PoolLedger
from sor.pools.types import AnyPool

from .path import Hop, Path, hop_views

logger = structlog.get_logger()


class PoolGraph:
    """Graph of tokens connected by pools.

    Keeps two indexes over the same pools: token to neighbouring tokens (for
    sequence enumeration) and unordered token pair to pool ids (for pool
    combinations). Pool ids per pair are sorted so enumeration order does
    not depend on snapshot order.
    """

    def __init__(self, pools: Iterable[AnyPool]) -> None:
        self._pools: dict[str, AnyPool] = {}
        self._adjacency: dict[str, set[str]] = {}
        self._pair_pools: dict[frozenset[str], list[str]] = {}

        for pool in pools:
            self._add_pool(pool)
        for pool_ids in self._pair_pools.values():
            pool_ids.sort()

    def _add_pool(self, pool: AnyPool) -> None:
        if pool.id in self._pools:
            logger.debug("pool_graph_duplicate_pool", pool_id=pool.id)
            return
        self._pools[pool.id] = pool
        tokens = pool.tokens_list
        for token_a, token_b in itertools.combinations(tokens, 2):
            self._adjacency.setdefault(token_a, set()).add(token_b)
            self._adjacency.setdefault(token_b, set()).add(token_a)
            self._pair_pools.setdefault(frozenset((token_a, token_b)), []).append(pool.id)

    @property
    def pools(self) -> dict[str, AnyPool]:
        return self._pools

    @property
    def token_count(self) -> int:
        return len(self._adjacency)

    def get_neighbors(self, token: str) -> set[str]:
        return self._adjacency.get(normalize_address(token), set())

    def pools_for_pair(self, token_a: str, token_b: str) -> list[str]:
        key = frozenset((normalize_address(token_a), normalize_address(token_b)))
        return self._pair_pools.get(key, [])

    def token_sequences(self, token_in: str, token_out: str, max_hops: int) -> list[list[str]]:
        """Token sequences from token_in to token_out with at most max_hops swaps.

        BFS yields shorter sequences first. Intermediates are distinct and
        never equal token_in or token_out. Neighbours are visited in sorted
        order so results are deterministic.
        """
        if token_in == token_out or token_in not in self._adjacency:
            return []

        sequences: list[list[str]] = []
        queue: deque[list[str]] = deque([[token_in]])
        while queue:
            sequence = queue.popleft()
            current = sequence[-1]
            for neighbor in sorted(self.get_neighbors(current)):
                if neighbor == token_out:
                    sequences.append(sequence + [neighbor])
                elif neighbor not in sequence and len(sequence) < max_hops:
                    queue.append(sequence + [neighbor])
        return sequences

    def paths_for_sequence(self, sequence: list[str]) -> list[Path]:
        """Every pool combination along a token sequence, no pool used twice."""
        pools_per_hop = [
            self.pools_for_pair(token_a, token_b)
            for token_a, token_b in zip(sequence, sequence[1:], strict=False)
        ]
        paths = []
        for combination in itertools.product(*pools_per_hop):
            if len(set(combination)) != len(combination):
                continue
            hops = tuple(
                Hop(pool_id=pool_id, token_in=sequence[i], token_out=sequence[i + 1])
                for i, pool_id in enumerate(combination)
            )
            paths.append(Path.from_hops(hops))
        return paths

    def find_paths(
        self,
        token_in: str,
        token_out: str,
        max_hops: int = DEFAULT_MAX_HOPS,
        max_paths: int = DEFAULT_MAX_CANDIDATE_PATHS,
        ledger: PoolLedger | None = None,
    ) -> list[Path]:
        """Find candidate paths from token_in to token_out.

        When more than ``max_paths`` paths exist, the ones with the deepest
        normalized liquidity are kept (ties broken by path id).

        Raises:
            NoPathFound: If no pool path connects the two tokens
        """
        token_in_norm = normalize_address(token_in)
        token_out_norm = normalize_address(token_out)

        paths: list[Path] = []
        for sequence in self.token_sequences(token_in_norm, token_out_norm, max_hops):
            paths.extend(self.paths_for_sequence(sequence))

        if not paths:
            raise NoPathFound(f"No path from {token_in_norm} to {token_out_norm}")

        if len(paths) > max_paths:
            ledger = ledger if ledger is not None else PoolLedger(self._pools)
            liquidity = {path.id: path_normalized_liquidity(path, ledger) for path in paths}
            paths.sort(key=lambda p: (-liquidity[p.id], p.id))
            logger.debug(
                "candidate_paths_capped",
                found=len(paths),
                kept=max_paths,
                token_in=token_in_norm,
                token_out=token_out_norm,
            )
            paths = paths[:max_paths]

        logger.debug("candidate_paths_found", count=len(paths), graph_tokens=self.token_count)
        return paths


@high_precision
def path_normalized_liquidity(path: Path, ledger: PoolLedger) -> Decimal:
    """Smallest hop liquidity along the path, in token_out units.

    Each hop's normalized liquidity is in that hop's token_out; it is
    carried to the path's token_out through the zero-amount spot prices of
    the hops after it. Paths whose pools cannot be priced count as empty.
    """
    try:
        views = hop_views(path, ledger)
        spot_prices = [
            pricing.spot_price_after_swap(pair, SwapType.EXACT_IN, Decimal(0))
            for pricing, pair in views
        ]
        hop_liquidity = [pricing.normalized_liquidity(pair) for pricing, pair in views]
    except InsufficientLiquidity as e:
        logger.debug("path_liquidity_unavailable", path_id=path.id, error=str(e))
        return Decimal(0)

    liquidity = None
    for index, depth in enumerate(hop_liquidity):
        for later_price in spot_prices[index + 1 :]:
            depth /= later_price
        liquidity = depth if liquidity is None else min(liquidity, depth)
    return liquidity if liquidity is not None else Decimal(0)


__all__ = ["PoolGraph", "path_normalized_liquidity"]
