from __future__ import annotations

from pydantic import BaseModel, Field


class PoolKeyResponse(BaseModel):
    token0: str
    token1: str
    fee: str = Field(..., description="Fee as a 0.128 fixed point integer, decimal string.")
    tick_spacing: int
    extension: str


class PoolResponse(BaseModel):
    pool_key: PoolKeyResponse
    initial_tick: int
    sqrt_ratio: str = Field(..., description="Initial sqrt price ratio, decimal string.")
    block_number: int
    transaction_hash: str
    timestamp: int | None = Field(None, description="Block timestamp (unix seconds).")
    token0_symbol: str | None = None
    token1_symbol: str | None = None
    description: str | None = None


class LatestPoolsTimeframeResponse(BaseModel):
    minutes: int
    network: str


class PoolsByHoursTimeframeResponse(BaseModel):
    hours: float
    minutes: int
    network: str


class LatestPoolsResponse(BaseModel):
    pools: list[PoolResponse]
    count: int
    timeframe: LatestPoolsTimeframeResponse


class PoolsByHoursResponse(BaseModel):
    pools: list[PoolResponse]
    count: int
    timeframe: PoolsByHoursTimeframeResponse
