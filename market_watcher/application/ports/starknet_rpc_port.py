from __future__ import annotations

from typing import Protocol

from market_watcher.domain.entities.pool import RawPoolEvent


class StarknetRpcPort(Protocol):
    def get_head_block_number(self, *, network: str) -> int:
        ...

    def get_block_timestamp(self, *, network: str, block_number: int) -> int:
        ...

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
        ...

    def get_contract_symbol(self, *, network: str, token_address: str) -> list[str]:
        ...
