from __future__ import annotations

from dataclasses import dataclass

from market_watcher.domain.entities.pool import PoolRecord


@dataclass(frozen=True)
class ListLatestPoolsInput:
    minutes: int = 60
    network: str = "mainnet"


@dataclass(frozen=True)
class ListPoolsByHoursInput:
    hours: float = 1.0
    network: str = "mainnet"


@dataclass(frozen=True)
class ListLatestPoolsOutput:
    pools: list[PoolRecord]
    count: int
    minutes: int
    network: str


@dataclass(frozen=True)
class ListPoolsByHoursOutput:
    pools: list[PoolRecord]
    count: int
    hours: float
    minutes: int
    network: str
