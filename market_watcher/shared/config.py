from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

logger = logging.getLogger(__name__)

NETWORKS = ("mainnet", "testnet")


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str) -> bool:
    return str(_env(name, default)).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    starknet_rpc_urls: dict
    ekubo_core_addresses: dict
    pool_initialized_event_selector: str
    cache_ttl_ms: int
    max_pool_cache_size: int
    block_timestamp_cache_size: int
    scan_chunk_size_blocks: int
    events_page_size: int
    max_lookback_minutes: int
    rpc_timeout_seconds: float
    rpc_max_retries: int
    rpc_min_interval_ms: int
    rpc_max_concurrency: int
    resolve_token_symbols: bool
    log_level: str


def get_settings() -> Settings:
    return Settings(
        starknet_rpc_urls={
            "mainnet": _env("STARKNET_RPC_URL", ""),
            "testnet": _env("STARKNET_TESTNET_RPC_URL", ""),
        },
        ekubo_core_addresses={
            "mainnet": _env(
                "EKUBO_CORE_MAINNET",
                "0x00000005dd3D2F4429AF886cD1a3b08289DBcEa99A294197E9eB43b0e0325b4b",
            ),
            "testnet": _env(
                "EKUBO_CORE_TESTNET",
                "0x0444a09d96389aa7148f1aada508e30b71299ffe650d9c97fdaae38cb9a23384",
            ),
        },
        pool_initialized_event_selector=_env(
            "POOL_INITIALIZED_EVENT_SELECTOR",
            "0x25ccf80ee62b2ca9b97c76ccea317c7f450fd6efb6ed6ea56da21d7bb9da5f1",
        ),
        cache_ttl_ms=int(_env("CACHE_TTL_MS", "60000")),
        max_pool_cache_size=int(_env("MAX_POOL_CACHE_SIZE", "1000")),
        block_timestamp_cache_size=int(_env("BLOCK_TIMESTAMP_CACHE_SIZE", "100000")),
        scan_chunk_size_blocks=int(_env("SCAN_CHUNK_SIZE_BLOCKS", "1000")),
        events_page_size=int(_env("EVENTS_PAGE_SIZE", "1000")),
        max_lookback_minutes=int(_env("MAX_LOOKBACK_MINUTES", "1440")),
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "10")),
        rpc_max_retries=int(_env("RPC_MAX_RETRIES", "3")),
        rpc_min_interval_ms=int(_env("RPC_MIN_INTERVAL_MS", "0")),
        rpc_max_concurrency=int(_env("RPC_MAX_CONCURRENCY", "10")),
        resolve_token_symbols=_bool("RESOLVE_TOKEN_SYMBOLS", "true"),
        log_level=str(_env("LOG_LEVEL", "INFO")).upper(),
    )


def log_settings(settings: Settings) -> None:
    logger.info(
        "config: cache_ttl_ms=%s max_pool_cache_size=%s chunk_size_blocks=%s max_lookback_minutes=%s "
        "rpc_timeout_seconds=%s rpc_max_concurrency=%s resolve_token_symbols=%s log_level=%s",
        settings.cache_ttl_ms,
        settings.max_pool_cache_size,
        settings.scan_chunk_size_blocks,
        settings.max_lookback_minutes,
        settings.rpc_timeout_seconds,
        settings.rpc_max_concurrency,
        settings.resolve_token_symbols,
        settings.log_level,
    )
    for network in NETWORKS:
        logger.info(
            "config: network=%s rpc_configured=%s core_address_configured=%s",
            network,
            bool(str(settings.starknet_rpc_urls.get(network) or "").strip()),
            bool(str(settings.ekubo_core_addresses.get(network) or "").strip()),
        )
    logger.info(
        "config: pool_initialized_event_selector_configured=%s",
        bool(settings.pool_initialized_event_selector),
    )
