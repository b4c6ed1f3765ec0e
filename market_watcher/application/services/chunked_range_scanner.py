from __future__ import annotations

from dataclasses import dataclass
import logging

from market_watcher.application.ports.starknet_rpc_port import StarknetRpcPort
from market_watcher.application.services.block_timestamp_cache import BlockTimestampCache
from market_watcher.application.services.pool_event_extractor import PoolEventExtractor
from market_watcher.domain.entities.pool import PoolRecord
from market_watcher.domain.exceptions import UnsupportedNetworkError, UpstreamUnavailableError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkedRangeScannerSettings:
    contract_addresses: dict
    event_selector: str
    chunk_size_blocks: int
    events_page_size: int = 1000


class ChunkedRangeScanner:
    """Walks the chain backward from the head in fixed-size block windows.

    The youngest block of each window is the stopping oracle: once its
    timestamp is older than the cutoff, the window and everything before it
    are out of range. Records are returned without exact cutoff filtering,
    since a window can straddle the cutoff.
    """

    def __init__(
        self,
        *,
        rpc: StarknetRpcPort,
        timestamps: BlockTimestampCache,
        extractor: PoolEventExtractor,
        settings: ChunkedRangeScannerSettings,
    ):
        if settings.chunk_size_blocks < 1:
            raise ValueError("chunk_size_blocks must be >= 1.")
        self._rpc = rpc
        self._timestamps = timestamps
        self._extractor = extractor
        self._settings = settings

    def scan(self, *, network: str, cutoff_ts: int) -> list[PoolRecord]:
        contract_address = self._settings.contract_addresses.get(network)
        if not contract_address:
            raise UnsupportedNetworkError(f"No Ekubo core contract configured for network '{network}'.")

        try:
            head = int(self._rpc.get_head_block_number(network=network))
        except (RuntimeError, TypeError, ValueError) as exc:
            raise UpstreamUnavailableError(
                f"Could not fetch the head block for network '{network}'."
            ) from exc

        chunk_size = self._settings.chunk_size_blocks
        to_block = head
        from_block = max(0, head - chunk_size)
        records: list[PoolRecord] = []
        windows = 0
        failed_windows = 0

        while True:
            windows += 1
            boundary_ts = self._timestamps.get(network=network, block_number=to_block)
            if boundary_ts is None:
                logger.warning(
                    "chunked_range_scanner: boundary_timestamp_missing network=%s block=%s treated_as=in_range",
                    network,
                    to_block,
                )
            elif boundary_ts < cutoff_ts:
                logger.debug(
                    "chunked_range_scanner: stop network=%s block=%s block_ts=%s cutoff_ts=%s",
                    network,
                    to_block,
                    boundary_ts,
                    cutoff_ts,
                )
                break

            try:
                events = self._rpc.get_events(
                    network=network,
                    contract_address=contract_address,
                    event_selector=self._settings.event_selector,
                    from_block=from_block,
                    to_block=to_block,
                    chunk_size=self._settings.events_page_size,
                )
            except (RuntimeError, TypeError, ValueError) as exc:
                failed_windows += 1
                events = []
                logger.warning(
                    "chunked_range_scanner: events_fetch_failed network=%s from_block=%s to_block=%s error=%s",
                    network,
                    from_block,
                    to_block,
                    exc,
                )

            records.extend(self._extractor.extract_many(network=network, events=events))

            if from_block == 0:
                break
            to_block = from_block - 1
            from_block = max(0, from_block - chunk_size)

        logger.info(
            "chunked_range_scanner: scanned network=%s head=%s last_boundary_block=%s windows=%s failed_windows=%s records=%s",
            network,
            head,
            to_block,
            windows,
            failed_windows,
            len(records),
        )
        return records
