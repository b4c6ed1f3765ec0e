from __future__ import annotations

from market_watcher.application.dto.list_pools import ListLatestPoolsInput, ListLatestPoolsOutput
from market_watcher.application.use_cases.discover_pools import DiscoverPoolsUseCase


class ListLatestPoolsUseCase:
    def __init__(self, *, discover_pools_use_case: DiscoverPoolsUseCase):
        self._discover_pools_use_case = discover_pools_use_case

    def execute(self, command: ListLatestPoolsInput) -> ListLatestPoolsOutput:
        pools = self._discover_pools_use_case.execute(
            minutes=command.minutes,
            network=command.network,
        )
        return ListLatestPoolsOutput(
            pools=pools,
            count=len(pools),
            minutes=command.minutes,
            network=command.network,
        )
