from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from pricematch.models import Coordinates, FuelPrice, GasStation, OperatingHours


def make_station(**overrides) -> GasStation:
    station = GasStation(
        id="station-1",
        name="Shell Station",
        brand="Shell",
        city="Manila",
        province="Metro Manila",
        address="1234 Taft Ave",
        coordinates=Coordinates(latitude=14.5995, longitude=120.9842),
        amenities=[],
        status="active",
        operating_hours=OperatingHours(
            open="08:00",
            close="17:00",
            is_24_hours=False,
            days_open=["monday", "tuesday", "wednesday", "thursday", "friday"],
        ),
    )
    return replace(station, **overrides)


def make_price(**overrides) -> FuelPrice:
    price = FuelPrice(
        id="price-1",
        fuel_type="Premium Gasoline",
        common_price=61.75,
        min_price=60.75,
        max_price=62.75,
        area="Manila",
        brand="Shell",
        week_of="2023-44",
    )
    return replace(price, **overrides)


@pytest.fixture
def station() -> GasStation:
    return make_station()


@pytest.fixture
def price() -> FuelPrice:
    return make_price()


@pytest.fixture
def repository():
    """PriceRepository fake with every query mocked."""
    repo = MagicMock()
    repo.get_latest_week = AsyncMock(return_value="2023-44")
    repo.get_prices_for_week = AsyncMock(return_value=[])
    repo.get_region_prices_for_week = AsyncMock(return_value=[])
    repo.get_historical_prices = AsyncMock(return_value=[])
    return repo
