"""Tests for the route entry point and the SOR facade."""

from decimal import Decimal

import pytest

from sor import SOR, RouteOptions, SorConfig, route
from sor.errors import AmountExceedsLiquidity, NoPathFound, OptimizationDidNotConverge
from sor.models.subgraph import SubgraphPool
from sor.models.swap_info import SwapInfo
from sor.models.types import PoolFilter, SwapType
from sor.pools.types import WeightedPool
from tests.helpers import (
    DAI,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    UNKNOWN_TOKEN,
    USDC,
    make_stable_pool,
    make_subgraph_pool,
    make_weighted_pool,
)


class TestRoute:
    def test_single_pool(self, balanced_pool: WeightedPool) -> None:
        plan = route([balanced_pool], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "10")

        assert plan.path_ids == ("pool-balanced",)
        assert plan.total_in == Decimal(10)
        assert abs(plan.total_out - Decimal(100) * Decimal("9.97") / Decimal("109.97")) < Decimal(
            "1e-15"
        )

    def test_splits_when_it_pays(self, split_pools: list[WeightedPool]) -> None:
        plan = route(split_pools, TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "10")

        assert set(plan.path_ids) == {"pool-balanced", "pool-cheap"}
        assert plan.total_in == Decimal(10)

    def test_accepts_snapshot_dicts_and_models(self) -> None:
        raw = make_subgraph_pool(pool_id="w1", balances={TOKEN_A: "100", TOKEN_B: "100"})
        from_dict = route([raw], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "1")
        from_model = route(
            [SubgraphPool.model_validate(raw)], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "1"
        )

        assert from_dict.total_out == from_model.total_out > 0

    def test_addresses_are_normalized(self, balanced_pool: WeightedPool) -> None:
        plan = route(
            [balanced_pool], TOKEN_A.upper().replace("0X", "0x"), TOKEN_B, SwapType.EXACT_IN, "1"
        )
        assert plan.token_in == TOKEN_A

    def test_amount_quantized_to_token_decimals(self) -> None:
        pool = make_weighted_pool("usdc-dai", {USDC: "1000", DAI: "1000"})
        plan = route([pool], USDC, DAI, SwapType.EXACT_IN, "1.0000009")

        assert plan.total_in == Decimal("1.000000")

    def test_two_hop_route(self, two_hop_pools: list[WeightedPool]) -> None:
        plan = route(two_hop_pools, TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "10")

        assert plan.path_ids == ("pool-ac_pool-cb",)
        assert [s.token_out for s in plan.steps] == [TOKEN_C, TOKEN_B]

    def test_max_hops_one_excludes_two_hop_route(self, two_hop_pools: list[WeightedPool]) -> None:
        with pytest.raises(NoPathFound):
            route(
                two_hop_pools,
                TOKEN_A,
                TOKEN_B,
                SwapType.EXACT_IN,
                "10",
                RouteOptions(max_hops=1),
            )

    def test_pool_type_filter(self, split_pools: list[WeightedPool]) -> None:
        with pytest.raises(NoPathFound):
            route(
                split_pools,
                TOKEN_A,
                TOKEN_B,
                SwapType.EXACT_IN,
                "1",
                RouteOptions(pool_type_filter=PoolFilter.STABLE),
            )

    def test_paused_pool_ignored(self, balanced_pool: WeightedPool) -> None:
        paused = make_weighted_pool(
            "paused", {TOKEN_A: "50", TOKEN_B: "60"}, swap_enabled=False
        )
        plan = route([balanced_pool, paused], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "10")

        assert plan.path_ids == ("pool-balanced",)

    def test_no_connecting_pool(self, split_pools: list[WeightedPool]) -> None:
        with pytest.raises(NoPathFound):
            route(split_pools, TOKEN_A, UNKNOWN_TOKEN, SwapType.EXACT_IN, "1")

    def test_same_token(self, split_pools: list[WeightedPool]) -> None:
        with pytest.raises(NoPathFound):
            route(split_pools, TOKEN_A, TOKEN_A, SwapType.EXACT_IN, "1")

    def test_pair_without_shared_pool(self) -> None:
        pools = [
            make_weighted_pool("p-ac", {TOKEN_A: "1", TOKEN_C: "1"}),
            make_weighted_pool("p-ub", {USDC: "1", TOKEN_B: "1"}),
        ]
        with pytest.raises(NoPathFound):
            route(pools, TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "0.1")

    def test_lopsided_stable_pool_shares_the_order(self) -> None:
        """About 835 A already buys 99% of the stable pool's B, so 985 A needs both pools."""
        stable = make_stable_pool("stable-ab", {TOKEN_A: "1", TOKEN_B: "1000"}, amp="200")
        weighted = make_weighted_pool("weighted-ab", {TOKEN_A: "1000", TOKEN_B: "1000"})

        options = RouteOptions(max_pools=2)
        plan = route([stable, weighted], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "985", options)

        assert set(plan.path_ids) == {"stable-ab", "weighted-ab"}
        assert plan.total_in == Decimal(985)
        assert plan.steps_for_path("stable-ab")[0].amount_out <= Decimal(990)

    def test_amount_above_liquidity(self, split_pools: list[WeightedPool]) -> None:
        with pytest.raises(AmountExceedsLiquidity):
            route(split_pools, TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "100")

    @pytest.mark.parametrize("amount", ["0", "-1", Decimal("0.0000000000000000001")])
    def test_non_positive_amount(self, balanced_pool: WeightedPool, amount) -> None:
        with pytest.raises(ValueError):
            route([balanced_pool], TOKEN_A, TOKEN_B, SwapType.EXACT_IN, amount)

    def test_config_iteration_limit(self, split_pools: list[WeightedPool]) -> None:
        with pytest.raises(OptimizationDidNotConverge):
            route(
                split_pools,
                TOKEN_A,
                TOKEN_B,
                SwapType.EXACT_IN,
                "10",
                config=SorConfig(max_iterations=1),
            )

    def test_gas_cost_function(self, split_pools: list[WeightedPool]) -> None:
        calls = []

        def gas_cost(token: str, gas_price: int, gas_units: int) -> Decimal:
            calls.append((token, gas_price, gas_units))
            return Decimal("3.5") * gas_units / 35_000

        plan = route(
            split_pools,
            TOKEN_A,
            TOKEN_B,
            SwapType.EXACT_IN,
            "10",
            RouteOptions(gas_price=10**11),
            gas_cost_fn=gas_cost,
        )

        assert plan.path_ids == ("pool-cheap",)
        assert plan.gas_cost == Decimal("3.5")
        assert plan.return_amount_considering_fees == plan.total_out - Decimal("3.5")
        assert calls[0] == (TOKEN_B, 10**11, 35_000)

    def test_exact_out_gas_priced_in_token_in(self, balanced_pool: WeightedPool) -> None:
        tokens = []

        def gas_cost(token: str, gas_price: int, gas_units: int) -> Decimal:
            tokens.append(token)
            return Decimal("0.01")

        plan = route(
            [balanced_pool], TOKEN_A, TOKEN_B, SwapType.EXACT_OUT, "1", gas_cost_fn=gas_cost
        )

        assert tokens == [TOKEN_A]
        assert plan.return_amount_considering_fees == plan.total_in + Decimal("0.01")


class TestRouteOptions:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_pools": 0},
            {"max_hops": 0},
            {"max_hops": 4},
            {"gas_price": -1},
            {"swap_gas": -1},
            {"max_candidate_paths": 0},
        ],
    )
    def test_invalid_options(self, kwargs) -> None:
        with pytest.raises(ValueError):
            RouteOptions(**kwargs)

    def test_sor_config_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOR_MAX_ITERATIONS", "12")
        monkeypatch.setenv("SOR_TOLERANCE", "1e-8")
        monkeypatch.setenv("SOR_MAX_CANDIDATE_PATHS", "5")
        config = SorConfig.from_env()

        assert config.max_iterations == 12
        assert config.tolerance == Decimal("1e-8")
        assert config.max_candidate_paths == 5

    def test_sor_config_rejects_bad_tolerance(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOR_TOLERANCE", "not-a-number")
        with pytest.raises(ValueError):
            SorConfig.from_env()


class StaticPoolSource:
    """Pool source returning a fixed snapshot."""

    def __init__(self, pools: list[dict]) -> None:
        self.pools = pools
        self.calls = 0

    def get_pools(self) -> list[SubgraphPool]:
        self.calls += 1
        return [SubgraphPool.model_validate(p) for p in self.pools]


class TestSOR:
    def test_fetch_pools_without_source(self) -> None:
        sor = SOR()
        assert sor.fetch_pools() is False
        assert sor.get_pools() == []

    def test_fetch_pools_from_source(self) -> None:
        source = StaticPoolSource(
            [make_subgraph_pool(pool_id="w1", balances={TOKEN_A: "100", TOKEN_B: "100"})]
        )
        sor = SOR(pool_source=source)

        assert sor.fetch_pools() is True
        assert source.calls == 1
        assert [p.id for p in sor.get_pools()] == ["w1"]

    def test_get_swaps(self) -> None:
        sor = SOR(
            initial_pools=[
                make_subgraph_pool(pool_id="w1", balances={TOKEN_A: "100", TOKEN_B: "100"})
            ]
        )
        info = sor.get_swaps(TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "1")

        assert isinstance(info, SwapInfo)
        assert info.swap_amount == str(10**18)
        assert int(info.return_amount) > 0
        assert info.swaps[0].pool_id == "w1"

    def test_get_swaps_nets_out_gas(self) -> None:
        sor = SOR(
            initial_pools=[
                make_subgraph_pool(pool_id="w1", balances={TOKEN_A: "100", TOKEN_B: "100"})
            ]
        )
        # 1 native asset is worth 1000 B; 35k gas at 100 gwei costs 3.5 B
        sor.swap_cost_calculator.set_native_asset_price_in_token(TOKEN_B, "1000")
        info = sor.get_swaps(
            TOKEN_A, TOKEN_B, SwapType.EXACT_IN, "10", RouteOptions(gas_price=10**11)
        )

        gas_raw = int(info.return_amount) - int(info.return_amount_considering_fees)
        assert gas_raw == 35 * 10**17

    def test_chain_id_and_cost_of_swap(self) -> None:
        sor = SOR(chain_id=137)
        sor.swap_cost_calculator.set_native_asset_price_in_token(TOKEN_B, "2")

        assert sor.chain_id == 137
        assert sor.get_cost_of_swap_in_token(TOKEN_B, 10**9) == Decimal("0.00007")
        assert sor.get_cost_of_swap_in_token(TOKEN_B, 10**9, 100_000) == Decimal("0.0002")
