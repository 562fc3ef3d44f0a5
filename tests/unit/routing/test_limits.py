"""Tests for path limits and candidate ranking."""

from decimal import Decimal

from sor.models.types import SwapType
from sor.pools.ledger import PoolLedger
from sor.pools.types import WeightedPool
from sor.routing.limits import PathLimiter, path_limit
from sor.routing.path import Hop, Path
from sor.routing.pathfinding import PoolGraph
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C, make_stable_pool, make_weighted_pool

SHAVE = 1 - Decimal("1e-9")


def direct_path(pool_id: str) -> Path:
    return Path.from_hops((Hop(pool_id=pool_id, token_in=TOKEN_A, token_out=TOKEN_B),))


def two_hop_path(first: str = "pool-ac", second: str = "pool-cb") -> Path:
    return Path.from_hops(
        (
            Hop(pool_id=first, token_in=TOKEN_A, token_out=TOKEN_C),
            Hop(pool_id=second, token_in=TOKEN_C, token_out=TOKEN_B),
        )
    )


class TestPathLimit:
    def test_single_weighted_hop(self, split_ledger: PoolLedger) -> None:
        path = direct_path("pool-cheap")

        assert path_limit(path, split_ledger, SwapType.EXACT_IN) == Decimal(15)
        assert path_limit(path, split_ledger, SwapType.EXACT_OUT) == Decimal(18)

    def test_single_stable_hop(self) -> None:
        pool = make_stable_pool("stable-ab", {TOKEN_A: "1000", TOKEN_B: "500"})
        ledger = PoolLedger([pool])

        assert path_limit(direct_path("stable-ab"), ledger, SwapType.EXACT_OUT) == Decimal(495)

    def test_two_hop_exact_in_bound_by_first_hop(self, two_hop_pools: list[WeightedPool]) -> None:
        """First hop accepts 300 A; the second hop's 600 C costs more A than that."""
        limit = path_limit(two_hop_path(), PoolLedger(two_hop_pools), SwapType.EXACT_IN)

        assert limit == Decimal(300) * SHAVE

    def test_two_hop_exact_out_bound_by_carried_limit(
        self, two_hop_pools: list[WeightedPool]
    ) -> None:
        """The first hop's 600 C yields about 230.24 B, below the second hop's 300 B."""
        limit = path_limit(two_hop_path(), PoolLedger(two_hop_pools), SwapType.EXACT_OUT)

        assert Decimal("230.23") < limit < Decimal("230.24")

    def test_uncarriable_hop_limit_is_not_binding(self) -> None:
        """The second hop's limit needs more C than the first hop can give; it is skipped."""
        pools = [
            make_weighted_pool("pool-ac", {TOKEN_A: "1000", TOKEN_C: "10"}),
            make_weighted_pool("pool-cb", {TOKEN_C: "2000", TOKEN_B: "1000"}),
        ]
        limit = path_limit(two_hop_path(), PoolLedger(pools), SwapType.EXACT_IN)

        assert limit == Decimal(300) * SHAVE

    def test_limit_follows_ledger_balances(self, split_ledger: PoolLedger) -> None:
        drained = split_ledger.with_swap("pool-cheap", TOKEN_B, Decimal(10), TOKEN_A, Decimal(10))

        assert path_limit(direct_path("pool-cheap"), drained, SwapType.EXACT_IN) == Decimal(12)


class TestPathLimiter:
    def test_score_orders_by_spot_price(self, split_pools: list[WeightedPool]) -> None:
        ledger = PoolLedger(split_pools)
        paths = PoolGraph(split_pools).find_paths(TOKEN_A, TOKEN_B)
        candidates = PathLimiter(ledger).score(paths, SwapType.EXACT_IN)

        # 50 A / 60 B is cheaper than 100 A / 100 B
        assert [c.id for c in candidates] == ["pool-cheap", "pool-balanced"]
        assert candidates[0].limit == Decimal(15)
        assert candidates[0].spot_price < candidates[1].spot_price

    def test_equal_prices_ranked_by_id(self) -> None:
        pools = [
            make_weighted_pool("pool-b", {TOKEN_A: "100", TOKEN_B: "100"}),
            make_weighted_pool("pool-a", {TOKEN_A: "100", TOKEN_B: "100"}),
        ]
        paths = PoolGraph(pools).find_paths(TOKEN_A, TOKEN_B)
        candidates = PathLimiter(PoolLedger(pools)).score(paths, SwapType.EXACT_IN)

        assert [c.id for c in candidates] == ["pool-a", "pool-b"]

    def test_unusable_path_dropped(self, balanced_pool: WeightedPool) -> None:
        paused = make_weighted_pool(
            "paused", {TOKEN_A: "100", TOKEN_B: "100"}, swap_enabled=False
        )
        limiter = PathLimiter(PoolLedger([balanced_pool, paused]))

        assert limiter.candidate(direct_path("paused"), SwapType.EXACT_IN) is None
        candidates = limiter.score(
            [direct_path("paused"), direct_path("pool-balanced")], SwapType.EXACT_IN
        )
        assert [c.id for c in candidates] == ["pool-balanced"]
