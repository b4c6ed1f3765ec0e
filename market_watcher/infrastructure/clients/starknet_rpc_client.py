from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from threading import Lock
import time

import httpx

from market_watcher.application.ports.starknet_rpc_port import StarknetRpcPort
from market_watcher.domain.entities.pool import RawPoolEvent


logger = logging.getLogger(__name__)


# sn_keccak("symbol")
SYMBOL_ENTRY_POINT_SELECTOR = "0x216b05c387bab9ac31918a3e61672f4618601f3c598a2f3f2710f37053e1ea4"

# CONTRACT_NOT_FOUND, INVALID_MESSAGE_SELECTOR, BLOCK_NOT_FOUND, CLASS_HASH_NOT_FOUND,
# PAGE_SIZE_TOO_BIG, CONTRACT_ERROR
NON_RETRYABLE_ERROR_CODES = {20, 21, 24, 28, 31, 40}


class StarknetRpcError(RuntimeError):
    pass


class StarknetRpcCallError(StarknetRpcError):
    def __init__(self, message: str, *, code: int | None = None):
        super().__init__(message)
        self.code = code


class StarknetResolutionError(StarknetRpcError):
    pass


@dataclass(frozen=True)
class StarknetRpcClientSettings:
    rpc_urls: dict
    timeout_seconds: float
    max_retries: int
    min_interval_ms: int


class StarknetRpcClient(StarknetRpcPort):
    def __init__(self, settings: StarknetRpcClientSettings):
        self._settings = settings
        self._lock = Lock()
        self._last_request_at = 0.0

    def get_head_block_number(self, *, network: str) -> int:
        return int(self._post_rpc(network=network, method="starknet_blockNumber", params={}))

    def get_block_timestamp(self, *, network: str, block_number: int) -> int:
        block = self._post_rpc(
            network=network,
            method="starknet_getBlockWithTxHashes",
            params={"block_id": {"block_number": int(block_number)}},
        )
        timestamp = (block or {}).get("timestamp")
        if timestamp is None:
            raise StarknetRpcError(f"Block {block_number} has no timestamp.")
        return int(timestamp)

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
        event_filter = {
            "from_block": {"block_number": int(from_block)},
            "to_block": {"block_number": int(to_block)},
            "address": contract_address,
            "keys": [[event_selector]],
            "chunk_size": int(chunk_size),
        }

        events: list[RawPoolEvent] = []
        seen_tokens: set[str] = set()
        continuation_token: str | None = None
        pages = 0
        while True:
            page_filter = dict(event_filter)
            if continuation_token:
                page_filter["continuation_token"] = continuation_token
            page = self._post_rpc(
                network=network,
                method="starknet_getEvents",
                params={"filter": page_filter},
            ) or {}
            pages += 1

            for row in page.get("events") or []:
                block_number = row.get("block_number")
                if block_number is None:
                    continue
                events.append(
                    RawPoolEvent(
                        block_number=int(block_number),
                        transaction_hash=str(row.get("transaction_hash") or ""),
                        data=tuple(row.get("data") or ()),
                    )
                )

            continuation_token = page.get("continuation_token")
            if not continuation_token:
                break
            if continuation_token in seen_tokens:
                raise StarknetRpcError(
                    f"starknet_getEvents returned a repeated continuation token: {continuation_token}"
                )
            seen_tokens.add(continuation_token)

        logger.debug(
            "starknet_rpc_client: fetched_events network=%s from_block=%s to_block=%s pages=%s events=%s",
            network,
            from_block,
            to_block,
            pages,
            len(events),
        )
        return events

    def get_contract_symbol(self, *, network: str, token_address: str) -> list[str]:
        contract_class = self._post_rpc(
            network=network,
            method="starknet_getClassAt",
            params={"block_id": "latest", "contract_address": token_address},
        )
        if not isinstance(contract_class, dict):
            raise StarknetRpcError(f"Unexpected class result for {token_address}: {contract_class!r}")
        if not _abi_has_function(contract_class.get("abi"), "symbol"):
            raise StarknetRpcError(f"Contract {token_address} has no symbol entry point in its ABI.")

        result = self._post_rpc(
            network=network,
            method="starknet_call",
            params={
                "request": {
                    "contract_address": token_address,
                    "entry_point_selector": SYMBOL_ENTRY_POINT_SELECTOR,
                    "calldata": [],
                },
                "block_id": "latest",
            },
        )
        if not isinstance(result, list):
            raise StarknetRpcError(f"Unexpected symbol result for {token_address}: {result!r}")
        return [str(value) for value in result]

    def _post_rpc(self, *, network: str, method: str, params: dict):
        url = self._resolve_rpc_url(network)
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._respect_rate_limit()
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                    response = client.post(
                        url,
                        json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
                    )
                    response.raise_for_status()
                    payload = response.json()

                if not isinstance(payload, dict):
                    raise RuntimeError(f"{method} returned a non object body: {payload!r}")
                error = payload.get("error")
                if error:
                    code = error.get("code") if isinstance(error, dict) else None
                    message = error.get("message", error) if isinstance(error, dict) else error
                    if code in NON_RETRYABLE_ERROR_CODES:
                        raise StarknetRpcCallError(f"{method} failed: {message}", code=code)
                    raise RuntimeError(f"{method} failed: {message}")

                return payload.get("result")
            except StarknetRpcCallError:
                raise
            except (httpx.HTTPError, RuntimeError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "starknet_rpc_client: rpc_retry method=%s network=%s attempt=%s/%s error=%s",
                    method,
                    network,
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise StarknetRpcError(f"JSON-RPC request failed after retries: {last_exc}") from last_exc

    def _respect_rate_limit(self) -> None:
        min_interval = max(0, self._settings.min_interval_ms) / 1000.0
        if min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_at = time.monotonic()

    def _resolve_rpc_url(self, network: str) -> str:
        url = str(self._settings.rpc_urls.get(network) or "").strip()
        if not url:
            raise StarknetResolutionError(f"Missing RPC URL for Starknet network '{network}'.")
        return url


def _abi_has_function(abi, name: str) -> bool:
    if isinstance(abi, str):
        try:
            abi = json.loads(abi)
        except ValueError:
            return False
    if not isinstance(abi, list):
        return False
    for entry in abi:
        if not isinstance(entry, dict):
            continue
        if entry.get("type") == "function" and entry.get("name") == name:
            return True
        if entry.get("type") == "interface" and _abi_has_function(entry.get("items"), name):
            return True
    return False
