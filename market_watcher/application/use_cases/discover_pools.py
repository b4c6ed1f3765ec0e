from __future__ import annotations

import logging
import time
from typing import Callable

from market_watcher.application.services.chunked_range_scanner import ChunkedRangeScanner
from market_watcher.application.services.pool_discovery_cache import PoolDiscoveryCache
from market_watcher.domain.entities.pool import PoolRecord
from market_watcher.domain.exceptions import InvalidWindowError, UnsupportedNetworkError


logger = logging.getLogger(__name__)


class DiscoverPoolsUseCase:
    def __init__(
        self,
        *,
        scanner: ChunkedRangeScanner,
        cache: PoolDiscoveryCache,
        networks: tuple[str, ...],
        max_lookback_minutes: int,
        clock: Callable[[], float] = time.time,
    ):
        self._scanner = scanner
        self._cache = cache
        self._networks = networks
        self._max_lookback_minutes = max_lookback_minutes
        self._clock = clock

    def execute(self, *, minutes: int, network: str) -> list[PoolRecord]:
        if network not in self._networks:
            raise UnsupportedNetworkError(
                f"network must be one of: {', '.join(self._networks)}."
            )
        if (
            isinstance(minutes, bool)
            or not isinstance(minutes, int)
            or minutes < 1
            or minutes > self._max_lookback_minutes
        ):
            raise InvalidWindowError(
                f"minutes must be an integer between 1 and {self._max_lookback_minutes}."
            )

        window_seconds = minutes * 60
        scan_cutoff = int(self._clock()) - window_seconds
        snapshot = self._cache.get_or_load(
            network=network,
            minutes=minutes,
            loader=lambda: self._scanner.scan(network=network, cutoff_ts=scan_cutoff),
        )

        # Unresolved timestamps never pass the cutoff.
        cutoff = int(self._clock()) - window_seconds
        pools = [
            record
            for record in snapshot.records.values()
            if record.timestamp is not None and record.timestamp >= cutoff
        ]
        pools.sort(key=lambda record: (record.block_number, record.transaction_hash), reverse=True)

        logger.info(
            "discover_pools: network=%s minutes=%s cached=%s returned=%s cutoff_ts=%s",
            network,
            minutes,
            len(snapshot.records),
            len(pools),
            cutoff,
        )
        return pools
