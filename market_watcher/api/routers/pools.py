from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from market_watcher.api.deps import (
    get_list_latest_pools_use_case,
    get_list_pools_by_hours_use_case,
)
from market_watcher.api.schemas.pools import (
    LatestPoolsResponse,
    LatestPoolsTimeframeResponse,
    PoolKeyResponse,
    PoolResponse,
    PoolsByHoursResponse,
    PoolsByHoursTimeframeResponse,
)
from market_watcher.application.dto.list_pools import ListLatestPoolsInput, ListPoolsByHoursInput
from market_watcher.application.use_cases.list_latest_pools import ListLatestPoolsUseCase
from market_watcher.application.use_cases.list_pools_by_hours import ListPoolsByHoursUseCase
from market_watcher.domain.entities.pool import PoolRecord
from market_watcher.domain.exceptions import (
    InvalidWindowError,
    UnsupportedNetworkError,
    UpstreamUnavailableError,
)

router = APIRouter()


def _pool_response(record: PoolRecord) -> PoolResponse:
    return PoolResponse(
        pool_key=PoolKeyResponse(
            token0=record.pool_key.token0,
            token1=record.pool_key.token1,
            fee=str(record.pool_key.fee),
            tick_spacing=record.pool_key.tick_spacing,
            extension=record.pool_key.extension,
        ),
        initial_tick=record.initial_tick,
        sqrt_ratio=record.sqrt_ratio,
        block_number=record.block_number,
        transaction_hash=record.transaction_hash,
        timestamp=record.timestamp,
        token0_symbol=record.token0_symbol,
        token1_symbol=record.token1_symbol,
        description=record.description,
    )


@router.get("/v1/pools/latest", response_model=LatestPoolsResponse)
def list_latest_pools(
    minutes: int = 60,
    network: str = "mainnet",
    use_case: ListLatestPoolsUseCase = Depends(get_list_latest_pools_use_case),
):
    try:
        result = use_case.execute(ListLatestPoolsInput(minutes=minutes, network=network))
    except (InvalidWindowError, UnsupportedNetworkError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return LatestPoolsResponse(
        pools=[_pool_response(record) for record in result.pools],
        count=result.count,
        timeframe=LatestPoolsTimeframeResponse(minutes=result.minutes, network=result.network),
    )


@router.get("/v1/pools/by-hours", response_model=PoolsByHoursResponse)
def list_pools_by_hours(
    hours: float = 1.0,
    network: str = "mainnet",
    use_case: ListPoolsByHoursUseCase = Depends(get_list_pools_by_hours_use_case),
):
    try:
        result = use_case.execute(ListPoolsByHoursInput(hours=hours, network=network))
    except (InvalidWindowError, UnsupportedNetworkError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return PoolsByHoursResponse(
        pools=[_pool_response(record) for record in result.pools],
        count=result.count,
        timeframe=PoolsByHoursTimeframeResponse(
            hours=result.hours,
            minutes=result.minutes,
            network=result.network,
        ),
    )
