"""
API Request/Response Schemas using Pydantic

Amounts are uint256/uint128 base-unit integers serialized as decimal strings,
since they do not fit in a JSON number.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class HealthCheckResponse(BaseModel):
    """Response payload for GET /api/v1/health"""
    status: str = Field(..., description="API health status")
    version: str = Field(..., description="API version")
    snapshot_source: str = Field(..., description="Configured snapshot source (rpc or graph)")
    stored_positions: Optional[int] = Field(default=None, description="Positions in the store, None if unreadable")
    timestamp: datetime = Field(..., description="Server time")


class PositionResponse(BaseModel):
    """Stored position with its last computed fee figures"""
    token_id: str = Field(..., description="NonfungiblePositionManager token ID")
    owner: str = Field(default="", description="Position owner address")
    pool_id: str = Field(default="", description="Pool contract address")
    tick_lower: int
    tick_upper: int
    liquidity: str = Field(..., description="Position liquidity (uint128)")
    in_range: bool
    amount_0: str = Field(default="0", description="Token0 held by the liquidity (base units)")
    amount_1: str = Field(default="0", description="Token1 held by the liquidity (base units)")
    price: str = Field(default="", description="Pool price, token1 per token0 (decimal-adjusted)")
    uncollected_0: str = Field(..., description="Uncollected token0 fees (base units)")
    uncollected_1: str = Field(..., description="Uncollected token1 fees (base units)")
    claimable_0: str = Field(..., description="Uncollected + tokensOwed0 (base units)")
    claimable_1: str = Field(..., description="Uncollected + tokensOwed1 (base units)")
    fee_sanity_clamped: bool = Field(..., description="True if a fee delta hit the sanity ceiling")
    block_number: Optional[int] = Field(default=None, description="Block the snapshots were read at")
    updated_at: str

    class Config:
        json_schema_extra = {
            "example": {
                "token_id": "1031465",
                "owner": "0x0000000000000000000000000000000000000001",
                "pool_id": "0x7ff1f30f6e7eec2ff3f0d1b60739115bdf88190f",
                "tick_lower": 100000,
                "tick_upper": 110000,
                "liquidity": "1000000000000000000",
                "in_range": True,
                "amount_0": "52093200000000000000",
                "amount_1": "1884350000000000000000000",
                "price": "36296.0",
                "uncollected_0": "600000000000000000000",
                "uncollected_1": "0",
                "claimable_0": "601000000000000000000",
                "claimable_1": "0",
                "fee_sanity_clamped": False,
                "block_number": 19000000,
                "updated_at": "2025-07-24T18:00:00+00:00"
            }
        }


class PositionListResponse(BaseModel):
    """Response payload for GET /api/v1/positions"""
    count: int
    positions: List[PositionResponse]


class PositionFeesResponse(BaseModel):
    """Live fee computation for one position"""
    token_id: str
    pool_id: str
    range_status: str = Field(..., description="below, in_range or above")
    current_tick: int
    price: str = Field(..., description="Pool price, token1 per token0 (decimal-adjusted)")
    block_number: Optional[int] = Field(default=None, description="Block the snapshots were read at")
    amount_0: str = Field(..., description="Token0 held by the liquidity (base units)")
    amount_1: str = Field(..., description="Token1 held by the liquidity (base units)")
    fee_growth_inside_0: str = Field(..., description="Current fee growth inside, token0 (Q128)")
    fee_growth_inside_1: str = Field(..., description="Current fee growth inside, token1 (Q128)")
    uncollected_0: str
    uncollected_1: str
    tokens_owed_0: str
    tokens_owed_1: str
    claimable_0: str
    claimable_1: str
    clamped_0: bool
    clamped_1: bool
    decimals_0: int
    decimals_1: int
    display: Optional[dict] = Field(default=None, description="Decimal-adjusted amounts for display")


class ErrorResponse(BaseModel):
    """Error payload"""
    detail: str
