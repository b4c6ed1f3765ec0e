from __future__ import annotations

from market_watcher.application.services.token_symbol_resolver import TokenSymbolResolver


ETH = "0x49d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"
UNKNOWN = "0x" + "0123456789abcdef" * 4


class FakeSymbolRpc:
    def __init__(self, *, symbols: dict[str, list[str]] | None = None, fail: bool = False):
        self._symbols = symbols or {}
        self._fail = fail
        self.calls: list[str] = []

    def get_contract_symbol(self, *, network: str, token_address: str) -> list[str]:
        _ = network
        self.calls.append(token_address)
        if self._fail:
            raise RuntimeError("contract not found")
        return self._symbols[token_address]


def test_static_table_symbol_never_calls_contract():
    rpc = FakeSymbolRpc(fail=True)
    resolver = TokenSymbolResolver(rpc=rpc)

    assert resolver.resolve(network="mainnet", token_address=ETH) == "ETH"
    assert resolver.resolve(network="mainnet", token_address=ETH) == "ETH"
    assert rpc.calls == []


def test_unknown_token_is_resolved_through_contract_and_cached():
    rpc = FakeSymbolRpc(symbols={UNKNOWN: [hex(int.from_bytes(b"PEPE", "big"))]})
    resolver = TokenSymbolResolver(rpc=rpc)

    assert resolver.resolve(network="mainnet", token_address=UNKNOWN) == "PEPE"
    assert resolver.resolve(network="mainnet", token_address=UNKNOWN) == "PEPE"
    assert rpc.calls == [UNKNOWN]


def test_failing_contract_call_yields_cached_placeholder():
    rpc = FakeSymbolRpc(fail=True)
    resolver = TokenSymbolResolver(rpc=rpc)

    first = resolver.resolve(network="mainnet", token_address=UNKNOWN)
    second = resolver.resolve(network="mainnet", token_address=UNKNOWN)

    assert first == "0x0123...cdef"
    assert second == first
    assert len(rpc.calls) == 1


def test_cache_is_scoped_per_network():
    rpc = FakeSymbolRpc(symbols={UNKNOWN: [hex(int.from_bytes(b"TST", "big"))]})
    resolver = TokenSymbolResolver(rpc=rpc)

    resolver.resolve(network="mainnet", token_address=UNKNOWN)
    resolver.resolve(network="testnet", token_address=UNKNOWN)

    assert len(rpc.calls) == 2


def test_invalid_address_returns_placeholder_without_rpc():
    rpc = FakeSymbolRpc()
    resolver = TokenSymbolResolver(rpc=rpc)

    assert resolver.resolve(network="mainnet", token_address="0xnot-an-address") == "0xnot-...ress"
    assert rpc.calls == []


def test_resolve_many_deduplicates_addresses():
    rpc = FakeSymbolRpc(symbols={UNKNOWN: [hex(int.from_bytes(b"PEPE", "big"))]})
    resolver = TokenSymbolResolver(rpc=rpc, max_workers=4)

    symbols = resolver.resolve_many(network="mainnet", token_addresses=[UNKNOWN, ETH, UNKNOWN])

    assert symbols == {UNKNOWN: "PEPE", ETH: "ETH"}
    assert rpc.calls == [UNKNOWN]


class BrokenSymbolRpc:
    def __init__(self):
        self.calls = 0

    def get_contract_symbol(self, *, network: str, token_address: str) -> list[str]:
        _ = (network, token_address)
        self.calls += 1
        raise AttributeError("'list' object has no attribute 'get'")


def test_unexpected_lookup_error_still_yields_cached_placeholder():
    rpc = BrokenSymbolRpc()
    resolver = TokenSymbolResolver(rpc=rpc)
    token = "0x" + "ab" * 32

    assert resolver.resolve(network="mainnet", token_address=token) == "0xabab...abab"
    assert resolver.resolve_many(network="mainnet", token_addresses=[token]) == {token: "0xabab...abab"}
    assert rpc.calls == 1
