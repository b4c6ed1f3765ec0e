from __future__ import annotations

from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import dataclass
import logging
from threading import Lock
import time
from typing import Callable

from market_watcher.domain.entities.pool import PoolRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolSnapshot:
    refreshed_at: float
    records: dict[str, PoolRecord]


class PoolDiscoveryCache:
    """Latest scan result per ``(network, minutes)`` key.

    A snapshot is fresh while ``clock() - refreshed_at < ttl_seconds``. Stale or
    missing keys are rebuilt by the caller-supplied loader; concurrent misses on
    the same key share a single in-flight load. Snapshots are built outside the
    lock and swapped in whole, so readers never see a partial result.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_size: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl_seconds = ttl_seconds
        self._max_size = max(0, max_size)
        self._clock = clock
        self._entries: OrderedDict[tuple[str, int], PoolSnapshot] = OrderedDict()
        self._inflight: dict[tuple[str, int], Future] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def size(self) -> int:
        with self._lock:
            return sum(len(snapshot.records) for snapshot in self._entries.values())

    def get_fresh(self, *, network: str, minutes: int) -> PoolSnapshot | None:
        with self._lock:
            return self._fresh_entry((network, minutes))

    def get_or_load(
        self,
        *,
        network: str,
        minutes: int,
        loader: Callable[[], list[PoolRecord]],
    ) -> PoolSnapshot:
        key = (network, minutes)
        with self._lock:
            snapshot = self._fresh_entry(key)
            if snapshot is not None:
                logger.debug("pool_discovery_cache: hit network=%s minutes=%s", network, minutes)
                return snapshot
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("pool_discovery_cache: join_inflight network=%s minutes=%s", network, minutes)
            return future.result()

        logger.debug("pool_discovery_cache: miss network=%s minutes=%s", network, minutes)
        try:
            refreshed_at = self._clock()
            records = loader()
            snapshot = PoolSnapshot(
                refreshed_at=refreshed_at,
                records={record.transaction_hash: record for record in records},
            )
            with self._lock:
                self._replace(key, snapshot)
                self._inflight.pop(key, None)
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            raise

        future.set_result(snapshot)
        logger.info(
            "pool_discovery_cache: refreshed network=%s minutes=%s pools=%s",
            network,
            minutes,
            len(snapshot.records),
        )
        return snapshot

    def _fresh_entry(self, key: tuple[str, int]) -> PoolSnapshot | None:
        snapshot = self._entries.get(key)
        if snapshot is None:
            return None
        if self._clock() - snapshot.refreshed_at >= self._ttl_seconds:
            return None
        return snapshot

    def _replace(self, key: tuple[str, int], snapshot: PoolSnapshot) -> None:
        self._entries.pop(key, None)
        if not self._max_size:
            self._entries[key] = snapshot
            return

        incoming = len(snapshot.records)
        if incoming > self._max_size:
            # Oversized snapshot becomes the only entry.
            logger.warning(
                "pool_discovery_cache: snapshot_too_large network=%s minutes=%s pools=%s max_size=%s evicted_keys=%s",
                key[0],
                key[1],
                incoming,
                self._max_size,
                len(self._entries),
            )
            self._entries.clear()
            self._entries[key] = snapshot
            return

        stored = sum(len(entry.records) for entry in self._entries.values())
        while self._entries and stored + incoming > self._max_size:
            evicted_key, evicted = self._entries.popitem(last=False)
            stored -= len(evicted.records)
            logger.debug(
                "pool_discovery_cache: evicted network=%s minutes=%s pools=%s",
                evicted_key[0],
                evicted_key[1],
                len(evicted.records),
            )
        self._entries[key] = snapshot
