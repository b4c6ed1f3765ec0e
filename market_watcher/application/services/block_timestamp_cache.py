from __future__ import annotations

from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
from threading import Lock

from market_watcher.application.ports.starknet_rpc_port import StarknetRpcPort


logger = logging.getLogger(__name__)


class BlockTimestampCache:
    """Block number -> Unix timestamp, one RPC fetch per uncached block.

    Timestamps never change once a block exists, so entries are write-once.
    With ``max_size > 0`` the least recently used entries are evicted.
    """

    def __init__(self, *, rpc: StarknetRpcPort, max_size: int = 0, max_workers: int = 10):
        self._rpc = rpc
        self._max_size = max(0, max_size)
        self._max_workers = max(1, max_workers)
        self._entries: OrderedDict[tuple[str, int], int] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, *, network: str, block_number: int) -> int | None:
        return self.get_many(network=network, block_numbers=[block_number]).get(block_number)

    def get_many(self, *, network: str, block_numbers: list[int]) -> dict[int, int]:
        unique_numbers = sorted(set(block_numbers))
        if not unique_numbers:
            return {}

        resolved: dict[int, int] = {}
        uncached: list[int] = []
        with self._lock:
            for block_number in unique_numbers:
                key = (network, block_number)
                cached = self._entries.get(key)
                if cached is None:
                    uncached.append(block_number)
                    continue
                self._entries.move_to_end(key)
                resolved[block_number] = cached

        if uncached:
            fetched = self._fetch(network=network, block_numbers=uncached)
            self._store(network=network, timestamps=fetched)
            resolved.update(fetched)
            logger.debug(
                "block_timestamp_cache: resolved network=%s requested=%s cached=%s fetched=%s missing=%s",
                network,
                len(unique_numbers),
                len(unique_numbers) - len(uncached),
                len(fetched),
                len(uncached) - len(fetched),
            )
        return resolved

    def _fetch(self, *, network: str, block_numbers: list[int]) -> dict[int, int]:
        def fetch_one(block_number: int) -> int:
            return self._rpc.get_block_timestamp(network=network, block_number=block_number)

        result: dict[int, int] = {}
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(block_numbers))) as executor:
            futures = {executor.submit(fetch_one, number): number for number in block_numbers}
            for future in as_completed(futures):
                block_number = futures[future]
                try:
                    result[block_number] = int(future.result())
                except (RuntimeError, TypeError, ValueError) as exc:
                    logger.warning(
                        "block_timestamp_cache: fetch_failed network=%s block=%s error=%s",
                        network,
                        block_number,
                        exc,
                    )
        return result

    def _store(self, *, network: str, timestamps: dict[int, int]) -> None:
        if not timestamps:
            return
        with self._lock:
            for block_number, timestamp in timestamps.items():
                key = (network, block_number)
                self._entries.setdefault(key, timestamp)
                self._entries.move_to_end(key)
            if self._max_size:
                while len(self._entries) > self._max_size:
                    self._entries.popitem(last=False)
