from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from market_watcher.application.services.block_timestamp_cache import BlockTimestampCache
from market_watcher.application.services.chunked_range_scanner import (
    ChunkedRangeScanner,
    ChunkedRangeScannerSettings,
)
from market_watcher.application.services.pool_discovery_cache import PoolDiscoveryCache
from market_watcher.application.services.pool_event_extractor import PoolEventExtractor
from market_watcher.application.services.token_symbol_resolver import TokenSymbolResolver
from market_watcher.application.use_cases.discover_pools import DiscoverPoolsUseCase
from market_watcher.application.use_cases.list_latest_pools import ListLatestPoolsUseCase
from market_watcher.application.use_cases.list_pools_by_hours import ListPoolsByHoursUseCase
from market_watcher.infrastructure.clients.starknet_rpc_client import (
    StarknetRpcClient,
    StarknetRpcClientSettings,
)
from market_watcher.shared.config import NETWORKS, get_settings


@lru_cache(maxsize=1)
def _get_starknet_rpc_client() -> StarknetRpcClient:
    settings = get_settings()
    if not str(settings.starknet_rpc_urls.get("mainnet") or "").strip():
        raise HTTPException(status_code=500, detail="STARKNET_RPC_URL is required.")
    return StarknetRpcClient(
        StarknetRpcClientSettings(
            rpc_urls=settings.starknet_rpc_urls,
            timeout_seconds=settings.rpc_timeout_seconds,
            max_retries=settings.rpc_max_retries,
            min_interval_ms=settings.rpc_min_interval_ms,
        )
    )


@lru_cache(maxsize=1)
def _get_block_timestamp_cache() -> BlockTimestampCache:
    settings = get_settings()
    return BlockTimestampCache(
        rpc=_get_starknet_rpc_client(),
        max_size=settings.block_timestamp_cache_size,
        max_workers=settings.rpc_max_concurrency,
    )


@lru_cache(maxsize=1)
def _get_token_symbol_resolver() -> TokenSymbolResolver:
    settings = get_settings()
    return TokenSymbolResolver(
        rpc=_get_starknet_rpc_client(),
        max_workers=settings.rpc_max_concurrency,
    )


@lru_cache(maxsize=1)
def _get_pool_discovery_cache() -> PoolDiscoveryCache:
    settings = get_settings()
    return PoolDiscoveryCache(
        ttl_seconds=settings.cache_ttl_ms / 1000.0,
        max_size=settings.max_pool_cache_size,
    )


@lru_cache(maxsize=1)
def _get_discover_pools_use_case() -> DiscoverPoolsUseCase:
    settings = get_settings()
    timestamps = _get_block_timestamp_cache()
    extractor = PoolEventExtractor(
        timestamps=timestamps,
        symbols=_get_token_symbol_resolver() if settings.resolve_token_symbols else None,
    )
    scanner = ChunkedRangeScanner(
        rpc=_get_starknet_rpc_client(),
        timestamps=timestamps,
        extractor=extractor,
        settings=ChunkedRangeScannerSettings(
            contract_addresses=settings.ekubo_core_addresses,
            event_selector=settings.pool_initialized_event_selector,
            chunk_size_blocks=settings.scan_chunk_size_blocks,
            events_page_size=settings.events_page_size,
        ),
    )
    return DiscoverPoolsUseCase(
        scanner=scanner,
        cache=_get_pool_discovery_cache(),
        networks=NETWORKS,
        max_lookback_minutes=settings.max_lookback_minutes,
    )


def get_list_latest_pools_use_case() -> ListLatestPoolsUseCase:
    return ListLatestPoolsUseCase(discover_pools_use_case=_get_discover_pools_use_case())


def get_list_pools_by_hours_use_case() -> ListPoolsByHoursUseCase:
    return ListPoolsByHoursUseCase(discover_pools_use_case=_get_discover_pools_use_case())
