"""Pydantic models for pool snapshots as served by the pools subgraph.

Balances, weights and fees are decimal strings in human units, e.g. a pool
holding 1.5 WETH reports ``balance="1.5"``.
"""

from pydantic import BaseModel, Field


class SubgraphToken(BaseModel):
    """One token of a pool snapshot."""

    address: str
    balance: str
    decimals: int = Field(ge=0, le=77)
    price_rate: str = Field(default="1", alias="priceRate")
    weight: str | None = None

    model_config = {"populate_by_name": True}


class SubgraphPool(BaseModel):
    """A pool snapshot, immutable for the duration of one routing request."""

    id: str
    address: str
    pool_type: str = Field(alias="poolType")
    swap_fee: str = Field(alias="swapFee")
    total_shares: str = Field(default="0", alias="totalShares")
    tokens: list[SubgraphToken]
    tokens_list: list[str] = Field(default_factory=list, alias="tokensList")
    total_weight: str | None = Field(default=None, alias="totalWeight")
    amp: str | None = None
    swap_enabled: bool = Field(default=True, alias="swapEnabled")

    # Unknown subgraph fields (expiryTime, principalToken, ...) are kept so
    # unsupported pool types still validate and can be skipped by the parser.
    model_config = {"populate_by_name": True, "extra": "allow"}
