from __future__ import annotations

from dataclasses import replace
import logging

from market_watcher.application.services.block_timestamp_cache import BlockTimestampCache
from market_watcher.application.services.token_symbol_resolver import TokenSymbolResolver
from market_watcher.domain.entities.pool import PoolRecord, RawPoolEvent
from market_watcher.domain.exceptions import MalformedEventError
from market_watcher.domain.services.pool_events import decode_pool_initialized, describe_pool


logger = logging.getLogger(__name__)


class PoolEventExtractor:
    def __init__(
        self,
        *,
        timestamps: BlockTimestampCache,
        symbols: TokenSymbolResolver | None = None,
    ):
        self._timestamps = timestamps
        self._symbols = symbols

    def extract(self, *, network: str, event: RawPoolEvent, timestamp: int | None) -> PoolRecord:
        record = decode_pool_initialized(event, timestamp=timestamp)
        if self._symbols is None:
            return record
        symbols = self._symbols.resolve_many(
            network=network,
            token_addresses=[record.pool_key.token0, record.pool_key.token1],
        )
        return self._with_symbols(record, symbols)

    def extract_many(self, *, network: str, events: list[RawPoolEvent]) -> list[PoolRecord]:
        if not events:
            return []

        timestamps = self._timestamps.get_many(
            network=network,
            block_numbers=[event.block_number for event in events],
        )

        records: list[PoolRecord] = []
        skipped = 0
        for event in events:
            try:
                records.append(
                    decode_pool_initialized(event, timestamp=timestamps.get(event.block_number))
                )
            except MalformedEventError as exc:
                skipped += 1
                logger.warning(
                    "pool_event_extractor: malformed_event network=%s block=%s tx=%s error=%s",
                    network,
                    event.block_number,
                    event.transaction_hash,
                    exc,
                )

        if self._symbols is not None and records:
            tokens: list[str] = []
            for record in records:
                tokens.extend([record.pool_key.token0, record.pool_key.token1])
            symbols = self._symbols.resolve_many(network=network, token_addresses=tokens)
            records = [self._with_symbols(record, symbols) for record in records]

        logger.debug(
            "pool_event_extractor: extracted network=%s events=%s records=%s skipped=%s",
            network,
            len(events),
            len(records),
            skipped,
        )
        return records

    @staticmethod
    def _with_symbols(record: PoolRecord, symbols: dict[str, str]) -> PoolRecord:
        token0_symbol = symbols.get(record.pool_key.token0)
        token1_symbol = symbols.get(record.pool_key.token1)
        if token0_symbol is None or token1_symbol is None:
            return record
        return replace(
            record,
            token0_symbol=token0_symbol,
            token1_symbol=token1_symbol,
            description=describe_pool(
                token0_symbol=token0_symbol,
                token1_symbol=token1_symbol,
                pool_key=record.pool_key,
            ),
        )
