from __future__ import annotations

from decimal import Decimal

from market_watcher.domain.entities.pool import PoolKey, PoolRecord, RawPoolEvent
from market_watcher.domain.exceptions import MalformedEventError
from market_watcher.domain.services.felt import felt_to_int, felt_to_signed


POOL_INITIALIZED_MIN_FIELDS = 7
FEE_DENOMINATOR = Decimal(2**128)


def decode_pool_initialized(event: RawPoolEvent, *, timestamp: int | None = None) -> PoolRecord:
    # data: token0, token1, fee, tick_spacing, extension, initial_tick, sqrt_ratio
    data = event.data
    if len(data) < POOL_INITIALIZED_MIN_FIELDS:
        raise MalformedEventError(
            f"PoolInitialized event has {len(data)} fields, expected at least "
            f"{POOL_INITIALIZED_MIN_FIELDS} (tx={event.transaction_hash})."
        )

    try:
        pool_key = PoolKey(
            token0=data[0],
            token1=data[1],
            fee=felt_to_int(data[2]),
            tick_spacing=felt_to_int(data[3]),
            extension=data[4],
        )
        initial_tick = felt_to_signed(data[5])
        sqrt_ratio = str(felt_to_int(data[6]))
    except (TypeError, ValueError) as exc:
        raise MalformedEventError(
            f"PoolInitialized event has non numeric fields (tx={event.transaction_hash}): {exc}"
        ) from exc

    return PoolRecord(
        pool_key=pool_key,
        initial_tick=initial_tick,
        sqrt_ratio=sqrt_ratio,
        block_number=event.block_number,
        transaction_hash=event.transaction_hash,
        timestamp=timestamp,
    )


def fee_to_percent(fee: int) -> Decimal:
    percent = Decimal(fee) * Decimal("100") / FEE_DENOMINATOR
    return percent.quantize(Decimal("0.0001")).normalize()


def describe_pool(*, token0_symbol: str, token1_symbol: str, pool_key: PoolKey) -> str:
    fee_pct = format(fee_to_percent(pool_key.fee), "f")
    return f"{token0_symbol}/{token1_symbol} fee {fee_pct}% tick spacing {pool_key.tick_spacing}"
