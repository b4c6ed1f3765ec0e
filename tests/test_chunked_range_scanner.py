from __future__ import annotations

from threading import Lock

import pytest

from market_watcher.application.services.block_timestamp_cache import BlockTimestampCache
from market_watcher.application.services.chunked_range_scanner import (
    ChunkedRangeScanner,
    ChunkedRangeScannerSettings,
)
from market_watcher.application.services.pool_event_extractor import PoolEventExtractor
from market_watcher.domain.entities.pool import RawPoolEvent
from market_watcher.domain.exceptions import UnsupportedNetworkError, UpstreamUnavailableError


CORE = "0xcore"
SELECTOR = "0xselector"


def _pool_event(block_number: int, tx: str, *, fields: int = 7) -> RawPoolEvent:
    data = ("0xa", "0xb", "0x0", "0x1", "0x0", "0x0", "0x1")
    return RawPoolEvent(block_number=block_number, transaction_hash=tx, data=data[:fields])


class FakeChainRpc:
    """Synthetic chain whose block timestamps equal their block numbers."""

    def __init__(
        self,
        *,
        head: int,
        events: list[RawPoolEvent] | None = None,
        failing_timestamps: set[int] | None = None,
        failing_windows: set[tuple[int, int]] | None = None,
        head_fails: bool = False,
    ):
        self._head = head
        self._events = events or []
        self._failing_timestamps = failing_timestamps or set()
        self._failing_windows = failing_windows or set()
        self._head_fails = head_fails
        self._lock = Lock()
        self.timestamp_calls: list[int] = []
        self.event_calls: list[tuple[int, int]] = []

    def get_head_block_number(self, *, network: str) -> int:
        _ = network
        if self._head_fails:
            raise RuntimeError("connection refused")
        return self._head

    def get_block_timestamp(self, *, network: str, block_number: int) -> int:
        _ = network
        with self._lock:
            self.timestamp_calls.append(block_number)
        if block_number in self._failing_timestamps:
            raise RuntimeError("timeout")
        return block_number

    def get_events(
        self,
        *,
        network: str,
        contract_address: str,
        event_selector: str,
        from_block: int,
        to_block: int,
        chunk_size: int,
    ) -> list[RawPoolEvent]:
        assert (network, contract_address, event_selector, chunk_size) == ("mainnet", CORE, SELECTOR, 100)
        self.event_calls.append((from_block, to_block))
        if (from_block, to_block) in self._failing_windows:
            raise RuntimeError("getEvents failed")
        return [event for event in self._events if from_block <= event.block_number <= to_block]


def _scanner(rpc: FakeChainRpc, *, chunk_size: int = 1000) -> ChunkedRangeScanner:
    timestamps = BlockTimestampCache(rpc=rpc)
    return ChunkedRangeScanner(
        rpc=rpc,
        timestamps=timestamps,
        extractor=PoolEventExtractor(timestamps=timestamps),
        settings=ChunkedRangeScannerSettings(
            contract_addresses={"mainnet": CORE},
            event_selector=SELECTOR,
            chunk_size_blocks=chunk_size,
            events_page_size=100,
        ),
    )


def test_scan_stops_after_first_window_older_than_cutoff():
    rpc = FakeChainRpc(head=100_000)

    records = _scanner(rpc).scan(network="mainnet", cutoff_ts=99_500)

    assert records == []
    assert rpc.event_calls == [(99_000, 100_000)]
    assert rpc.timestamp_calls == [100_000, 98_999]


def test_scan_includes_window_that_straddles_cutoff():
    rpc = FakeChainRpc(
        head=100_000,
        events=[
            _pool_event(99_900, "0x1"),
            _pool_event(98_600, "0x2"),
            _pool_event(98_100, "0x3"),
            _pool_event(97_500, "0x4"),
        ],
    )

    records = _scanner(rpc).scan(network="mainnet", cutoff_ts=98_500)

    assert rpc.event_calls == [(99_000, 100_000), (98_000, 98_999)]
    assert [record.transaction_hash for record in records] == ["0x1", "0x2", "0x3"]
    assert [record.timestamp for record in records] == [99_900, 98_600, 98_100]


def test_scan_walks_back_to_genesis():
    rpc = FakeChainRpc(head=1_500, events=[_pool_event(0, "0xgenesis"), _pool_event(1_200, "0x1")])

    records = _scanner(rpc).scan(network="mainnet", cutoff_ts=0)

    assert rpc.event_calls == [(500, 1_500), (0, 499)]
    assert {record.transaction_hash for record in records} == {"0xgenesis", "0x1"}


def test_missing_boundary_timestamp_keeps_window_in_range():
    rpc = FakeChainRpc(head=3_000, failing_timestamps={1_999})

    _scanner(rpc).scan(network="mainnet", cutoff_ts=2_500)

    assert rpc.event_calls == [(2_000, 3_000), (1_000, 1_999)]


def test_failed_window_fetch_does_not_abort_scan():
    rpc = FakeChainRpc(
        head=3_000,
        events=[_pool_event(2_500, "0x1"), _pool_event(1_500, "0x2")],
        failing_windows={(2_000, 3_000)},
    )

    records = _scanner(rpc).scan(network="mainnet", cutoff_ts=0)

    assert rpc.event_calls == [(2_000, 3_000), (1_000, 1_999), (0, 999)]
    assert [record.transaction_hash for record in records] == ["0x2"]


def test_malformed_events_are_skipped():
    rpc = FakeChainRpc(
        head=1_000,
        events=[_pool_event(900, "0xbad", fields=6), _pool_event(950, "0xgood")],
    )

    records = _scanner(rpc).scan(network="mainnet", cutoff_ts=500)

    assert [record.transaction_hash for record in records] == ["0xgood"]


def test_head_failure_raises_upstream_unavailable():
    rpc = FakeChainRpc(head=1_000, head_fails=True)

    with pytest.raises(UpstreamUnavailableError):
        _scanner(rpc).scan(network="mainnet", cutoff_ts=0)
    assert rpc.event_calls == []


def test_unknown_network_is_rejected():
    rpc = FakeChainRpc(head=1_000)

    with pytest.raises(UnsupportedNetworkError):
        _scanner(rpc).scan(network="devnet", cutoff_ts=0)
