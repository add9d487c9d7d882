"""
Capability contracts for the collaborators the matching engine depends on.
Concrete implementations live in pricematch.clients; tests substitute fakes.
"""
from typing import List, Optional, Protocol, Sequence

from pricematch.models import FuelPrice, GasStation, WeekId


class PriceRepository(Protocol):
    """Read-only access to weekly fuel price observations."""

    async def get_latest_week(self) -> Optional[WeekId]:
        ...

    async def get_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        ...

    async def get_region_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        ...

    async def get_historical_prices(self, area: str, fuel_type: str) -> Sequence[FuelPrice]:
        ...


class StationSearch(Protocol):
    """Free-text station lookup."""

    async def search_stations(self, query: str) -> List[GasStation]:
        ...


class FuelTypeNormalizer(Protocol):
    def __call__(self, raw_fuel_type: str) -> str:
        ...
