from __future__ import annotations

from fastapi.testclient import TestClient

from market_watcher.api.deps import get_list_latest_pools_use_case, get_list_pools_by_hours_use_case
from market_watcher.application.dto.list_pools import ListLatestPoolsOutput, ListPoolsByHoursOutput
from market_watcher.domain.entities.pool import PoolKey, PoolRecord
from market_watcher.domain.exceptions import InvalidWindowError, UpstreamUnavailableError
from market_watcher.main import app


def _record() -> PoolRecord:
    return PoolRecord(
        pool_key=PoolKey(
            token0="0x49d3",
            token1="0x53c9",
            fee=2**128 // 100,
            tick_spacing=200,
            extension="0x0",
        ),
        initial_tick=-12,
        sqrt_ratio="340282366920938463463374607431768211456",
        block_number=123,
        transaction_hash="0xtx",
        timestamp=1_700_000_000,
        token0_symbol="ETH",
        token1_symbol="USDC",
        description="ETH/USDC fee 1% tick spacing 200",
    )


class FakeListLatestPoolsUseCase:
    def __init__(self):
        self.commands = []

    def execute(self, command):
        self.commands.append(command)
        return ListLatestPoolsOutput(
            pools=[_record()],
            count=1,
            minutes=command.minutes,
            network=command.network,
        )


class FakeListPoolsByHoursUseCase:
    def execute(self, command):
        return ListPoolsByHoursOutput(
            pools=[],
            count=0,
            hours=command.hours,
            minutes=int(command.hours * 60),
            network=command.network,
        )


class FailingUseCase:
    def __init__(self, exc: Exception):
        self._exc = exc

    def execute(self, _command):
        raise self._exc


def test_latest_pools_returns_pools_and_timeframe():
    fake = FakeListLatestPoolsUseCase()
    app.dependency_overrides[get_list_latest_pools_use_case] = lambda: fake

    client = TestClient(app)
    response = client.get("/v1/pools/latest", params={"minutes": 30, "network": "testnet"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 1
    assert payload["timeframe"] == {"minutes": 30, "network": "testnet"}
    pool = payload["pools"][0]
    assert pool["pool_key"]["fee"] == str(2**128 // 100)
    assert pool["initial_tick"] == -12
    assert pool["sqrt_ratio"] == "340282366920938463463374607431768211456"
    assert pool["token0_symbol"] == "ETH"
    assert pool["description"] == "ETH/USDC fee 1% tick spacing 200"

    app.dependency_overrides.clear()


def test_latest_pools_uses_defaults():
    fake = FakeListLatestPoolsUseCase()
    app.dependency_overrides[get_list_latest_pools_use_case] = lambda: fake

    client = TestClient(app)
    response = client.get("/v1/pools/latest")

    assert response.status_code == 200
    assert fake.commands[0].minutes == 60
    assert fake.commands[0].network == "mainnet"

    app.dependency_overrides.clear()


def test_pools_by_hours_returns_timeframe_with_minutes():
    app.dependency_overrides[get_list_pools_by_hours_use_case] = lambda: FakeListPoolsByHoursUseCase()

    client = TestClient(app)
    response = client.get("/v1/pools/by-hours", params={"hours": 2})

    assert response.status_code == 200
    assert response.json() == {
        "pools": [],
        "count": 0,
        "timeframe": {"hours": 2.0, "minutes": 120, "network": "mainnet"},
    }

    app.dependency_overrides.clear()


def test_invalid_window_maps_to_400():
    app.dependency_overrides[get_list_latest_pools_use_case] = lambda: FailingUseCase(
        InvalidWindowError("minutes must be an integer between 1 and 1440.")
    )

    client = TestClient(app)
    response = client.get("/v1/pools/latest", params={"minutes": 5000})

    assert response.status_code == 400
    assert "minutes" in response.json()["detail"]

    app.dependency_overrides.clear()


def test_upstream_unavailable_maps_to_503():
    app.dependency_overrides[get_list_pools_by_hours_use_case] = lambda: FailingUseCase(
        UpstreamUnavailableError("Could not fetch the head block for network 'mainnet'.")
    )

    client = TestClient(app)
    response = client.get("/v1/pools/by-hours", params={"hours": 1})

    assert response.status_code == 503

    app.dependency_overrides.clear()
