from __future__ import annotations

from decimal import Decimal, InvalidOperation
from math import ceil

from market_watcher.application.dto.list_pools import ListPoolsByHoursInput, ListPoolsByHoursOutput
from market_watcher.application.use_cases.discover_pools import DiscoverPoolsUseCase
from market_watcher.domain.exceptions import InvalidWindowError


MIN_HOURS = Decimal("0.1")
MAX_HOURS = Decimal("24")


def hours_to_minutes(hours: float) -> int:
    try:
        value = Decimal(str(hours))
    except InvalidOperation as exc:
        raise InvalidWindowError("hours must be a number between 0.1 and 24.") from exc
    if not value.is_finite() or value < MIN_HOURS or value > MAX_HOURS:
        raise InvalidWindowError("hours must be a number between 0.1 and 24.")
    return int(ceil(value * 60))


class ListPoolsByHoursUseCase:
    def __init__(self, *, discover_pools_use_case: DiscoverPoolsUseCase):
        self._discover_pools_use_case = discover_pools_use_case

    def execute(self, command: ListPoolsByHoursInput) -> ListPoolsByHoursOutput:
        minutes = hours_to_minutes(command.hours)
        pools = self._discover_pools_use_case.execute(minutes=minutes, network=command.network)
        return ListPoolsByHoursOutput(
            pools=pools,
            count=len(pools),
            hours=command.hours,
            minutes=minutes,
            network=command.network,
        )
