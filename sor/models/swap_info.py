"""Pydantic models for the batch-swap result handed to settlement.

Amounts are integer strings in the token's smallest unit.
"""

from pydantic import BaseModel, Field


class SwapV2(BaseModel):
    """One step of a batch swap.

    A zero ``amount`` means "use the amount produced by the previous step"
    when chaining the hops of a multi-hop path.
    """

    pool_id: str = Field(alias="poolId")
    asset_in_index: int = Field(alias="assetInIndex", ge=0)
    asset_out_index: int = Field(alias="assetOutIndex", ge=0)
    amount: str
    user_data: str = Field(default="0x", alias="userData")

    model_config = {"populate_by_name": True}


class SwapInfo(BaseModel):
    """Batch swap with aggregate amounts.

    ``return_amount_considering_fees`` is the return net of the gas cost of
    the selected paths (subtracted for exact in, added for exact out).
    """

    token_addresses: list[str] = Field(default_factory=list, alias="tokenAddresses")
    swaps: list[SwapV2] = Field(default_factory=list)
    swap_amount: str = Field(default="0", alias="swapAmount")
    return_amount: str = Field(default="0", alias="returnAmount")
    return_amount_considering_fees: str = Field(default="0", alias="returnAmountConsideringFees")
    token_in: str = Field(default="", alias="tokenIn")
    token_out: str = Field(default="", alias="tokenOut")
    market_sp: str = Field(default="0", alias="marketSp")

    model_config = {"populate_by_name": True}

    @property
    def is_empty(self) -> bool:
        return not self.swaps
