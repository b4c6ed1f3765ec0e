from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from threading import Lock

from market_watcher.application.ports.starknet_rpc_port import StarknetRpcPort
from market_watcher.domain.services.felt import normalize_address, truncate_address
from market_watcher.domain.services.token_symbols import lookup_static_symbol, symbol_from_felts


logger = logging.getLogger(__name__)


class TokenSymbolResolver:
    def __init__(self, *, rpc: StarknetRpcPort, max_workers: int = 10):
        self._rpc = rpc
        self._max_workers = max(1, max_workers)
        self._symbols: dict[tuple[str, str], str] = {}
        self._lock = Lock()

    def resolve(self, *, network: str, token_address: str) -> str:
        try:
            normalized = normalize_address(token_address)
        except ValueError:
            return truncate_address(token_address)

        key = (network, normalized)
        with self._lock:
            cached = self._symbols.get(key)
        if cached is not None:
            return cached

        static_symbol = lookup_static_symbol(normalized)
        if static_symbol is not None:
            return self._store(key, static_symbol)

        try:
            raw_symbol = self._rpc.get_contract_symbol(network=network, token_address=normalized)
            symbol = symbol_from_felts(raw_symbol)
        except Exception as exc:
            symbol = truncate_address(token_address)
            logger.warning(
                "token_symbol_resolver: symbol_lookup_failed network=%s token=%s fallback=%s error=%s",
                network,
                normalized,
                symbol,
                exc,
            )
        return self._store(key, symbol)

    def resolve_many(self, *, network: str, token_addresses: list[str]) -> dict[str, str]:
        unique_addresses = list(dict.fromkeys(token_addresses))
        if not unique_addresses:
            return {}

        workers = min(self._max_workers, len(unique_addresses))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            symbols = executor.map(
                lambda address: self.resolve(network=network, token_address=address),
                unique_addresses,
            )
            return dict(zip(unique_addresses, symbols))

    def _store(self, key: tuple[str, str], symbol: str) -> str:
        with self._lock:
            return self._symbols.setdefault(key, symbol)
