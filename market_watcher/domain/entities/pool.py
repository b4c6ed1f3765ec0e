from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolKey:
    token0: str
    token1: str
    fee: int
    tick_spacing: int
    extension: str


@dataclass(frozen=True)
class RawPoolEvent:
    block_number: int
    transaction_hash: str
    data: tuple[str, ...]


@dataclass(frozen=True)
class PoolRecord:
    pool_key: PoolKey
    initial_tick: int
    sqrt_ratio: str
    block_number: int
    transaction_hash: str
    timestamp: int | None = None
    token0_symbol: str | None = None
    token1_symbol: str | None = None
    description: str | None = None
