"""API endpoints for the order router."""

import os
from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from sor.config import RouteOptions, SorConfig
from sor.models.subgraph import SubgraphPool
from sor.models.swap_info import SwapInfo
from sor.models.types import Address, PoolFilter, SwapType
from sor.pools.source import JsonFilePoolSource
from sor.routing.plan import to_swap_info
from sor.routing.router import SOR, route

logger = structlog.get_logger()

router = APIRouter()

DecimalString = Annotated[str, Field(pattern=r"^\d+(\.\d+)?$")]


class RouteOptionsModel(BaseModel):
    """Request-side view of RouteOptions."""

    max_pools: int = Field(default=4, ge=1, alias="maxPools")
    pool_type_filter: PoolFilter = Field(default=PoolFilter.ALL, alias="poolTypeFilter")
    max_hops: int = Field(default=2, ge=1, le=3, alias="maxHops")
    gas_price: int = Field(default=0, ge=0, alias="gasPrice")
    swap_gas: int = Field(default=35_000, ge=0, alias="swapGas")

    model_config = {"populate_by_name": True}

    def to_options(self) -> RouteOptions:
        return RouteOptions(
            max_pools=self.max_pools,
            pool_type_filter=self.pool_type_filter,
            max_hops=self.max_hops,
            gas_price=self.gas_price,
            swap_gas=self.swap_gas,
        )


class RouteRequest(BaseModel):
    """A route request.

    ``pools`` carries the snapshot to route against; when omitted the
    server's last fetched snapshot is used.
    """

    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    swap_type: SwapType = Field(alias="swapType")
    amount: DecimalString
    options: RouteOptionsModel = Field(default_factory=RouteOptionsModel)
    pools: list[SubgraphPool] | None = None

    model_config = {"populate_by_name": True}


class PoolsUpdate(BaseModel):
    """A snapshot update.

    ``pools`` replaces the server's snapshot; when omitted the snapshot is
    refetched from the configured pool source. ``nativeAssetPrices`` maps a
    token to the price of one native asset in that token, used to price gas.
    """

    pools: list[SubgraphPool] | None = None
    native_asset_prices: dict[Address, DecimalString] = Field(
        default_factory=dict, alias="nativeAssetPrices"
    )

    model_config = {"populate_by_name": True}


class PoolsUpdateResponse(BaseModel):
    pool_count: int = Field(alias="poolCount")
    fetched: bool

    model_config = {"populate_by_name": True}


@lru_cache(maxsize=1)
def get_default_sor() -> SOR:
    """Process-wide router.

    When SOR_POOLS_FILE names a JSON snapshot, it becomes the pool source
    and is loaded at startup.
    """
    pools_file = os.environ.get("SOR_POOLS_FILE")
    if not pools_file:
        return SOR(config=SorConfig.from_env())

    sor = SOR(pool_source=JsonFilePoolSource(pools_file), config=SorConfig.from_env())
    sor.fetch_pools()
    return sor


def get_sor() -> SOR:
    """Dependency provider for the router instance.

    Override this in tests to inject a router with a preloaded snapshot:
        app.dependency_overrides[get_sor] = lambda: sor
    """
    return get_default_sor()


@router.post("/pools", response_model=PoolsUpdateResponse, response_model_by_alias=True)
async def update_pools(
    request: PoolsUpdate, sor: SOR = Depends(get_sor)
) -> PoolsUpdateResponse:
    """Replace the snapshot and cache native-asset prices for gas costing."""
    logger.info(
        "received_pools_update",
        inline_pools=request.pools is not None,
        native_prices=len(request.native_asset_prices),
    )
    for token, price in request.native_asset_prices.items():
        sor.swap_cost_calculator.set_native_asset_price_in_token(token, price)

    fetched = sor.fetch_pools(request.pools)
    return PoolsUpdateResponse(pool_count=len(sor.get_pools()), fetched=fetched)


@router.post("/route", response_model=SwapInfo, response_model_by_alias=True)
async def route_swap(request: RouteRequest, sor: SOR = Depends(get_sor)) -> SwapInfo:
    """Route a swap and return the batch-swap plan.

    Routing failures (no path, not enough liquidity, no convergence) are
    turned into 422 responses by the application's exception handler.
    """
    logger.info(
        "received_route_request",
        token_in=request.token_in,
        token_out=request.token_out,
        swap_type=request.swap_type.value,
        amount=request.amount,
        inline_pools=request.pools is not None,
    )
    options = request.options.to_options()

    if request.pools is None:
        return sor.get_swaps(
            request.token_in, request.token_out, request.swap_type, request.amount, options
        )

    plan = route(
        request.pools,
        request.token_in,
        request.token_out,
        request.swap_type,
        request.amount,
        options,
        gas_cost_fn=sor.swap_cost_calculator,
        config=sor.config,
    )
    return to_swap_info(plan)
