import pytest
from unittest.mock import AsyncMock

from conftest import make_price, make_station
from pricematch.matchers.matching_orchestrator import PriceStationConnector
from pricematch.models import BestPriceItem, ConfidenceLevel, PriceMatchResult


# getPricesForStation

@pytest.mark.asyncio
async def test_prices_for_station_without_latest_week(repository, station):
    repository.get_latest_week = AsyncMock(return_value=None)
    connector = PriceStationConnector(repository)

    result = await connector.get_prices_for_station(station)

    assert result == []
    repository.get_prices_for_week.assert_not_called()


@pytest.mark.asyncio
async def test_prices_for_station_without_prices(repository, station):
    connector = PriceStationConnector(repository)
    assert await connector.get_prices_for_station(station) == []
    repository.get_prices_for_week.assert_awaited_once_with("2023-44")


@pytest.mark.asyncio
async def test_prices_for_station_exact_match(repository, station, price):
    repository.get_prices_for_week = AsyncMock(return_value=[price])
    connector = PriceStationConnector(repository)

    result = await connector.get_prices_for_station(station)

    assert result == [
        PriceMatchResult(
            price=price,
            station_id="station-1",
            station_name="Shell Station",
            match_confidence=0.9,
            confidence_level=ConfidenceLevel.HIGH,
        )
    ]


@pytest.mark.asyncio
async def test_prices_for_station_invalid_price_is_low(repository, station):
    repository.get_prices_for_week = AsyncMock(return_value=[make_price(common_price=-1)])
    connector = PriceStationConnector(repository)

    result = await connector.get_prices_for_station(station)

    assert len(result) == 1
    assert result[0].confidence_level == ConfidenceLevel.LOW
    assert result[0].match_confidence < 0.5


@pytest.mark.asyncio
async def test_prices_for_station_deduplicates_by_fuel_type(repository, station):
    prices = [
        make_price(id="zero", fuel_type="RON 95", common_price=0),
        make_price(id="good", fuel_type="Premium Gasoline", common_price=61.75),
        make_price(id="diesel", fuel_type="DIESEL", common_price=55.1),
    ]
    repository.get_prices_for_week = AsyncMock(return_value=prices)
    connector = PriceStationConnector(repository)

    result = await connector.get_prices_for_station(station)

    assert [r.price.id for r in result] == ["diesel", "good"]


@pytest.mark.asyncio
async def test_prices_for_station_falls_back_to_fuzzy(repository):
    pasig_station = make_station(city="Pasig")
    repository.get_prices_for_week = AsyncMock(
        return_value=[make_price(), make_price(id="other", brand="Mismatch", area="Cebu")]
    )
    connector = PriceStationConnector(repository)

    result = await connector.get_prices_for_station(pasig_station)

    assert [r.price.id for r in result] == ["price-1"]
    assert result[0].match_confidence == pytest.approx(0.73)
    assert result[0].confidence_level == ConfidenceLevel.MEDIUM


@pytest.mark.asyncio
async def test_prices_for_station_swallows_query_errors(repository, station):
    repository.get_latest_week = AsyncMock(side_effect=Exception("Database error"))
    connector = PriceStationConnector(repository)
    assert await connector.get_prices_for_station(station) == []


# findMatchingStations

def test_find_matching_stations_empty(repository, price):
    connector = PriceStationConnector(repository)
    assert connector.find_matching_stations(price, []) == []


def test_find_matching_stations_prioritizes_exact(repository, station, price):
    connector = PriceStationConnector(repository)
    stations = [station, make_station(id="station-2", brand="Caltex")]

    result = connector.find_matching_stations(price, stations)

    assert result[0].confidence >= 0.9
    assert result[0].station.id == "station-1"


def test_find_matching_stations_mismatched_brand(repository, station):
    connector = PriceStationConnector(repository)
    result = connector.find_matching_stations(make_price(brand="Mismatch"), [station])
    for match in result:
        assert match.confidence_level == ConfidenceLevel.LOW


# getBestPricesForLocation

@pytest.mark.asyncio
async def test_best_prices_without_location_data(repository):
    repository.get_latest_week = AsyncMock(return_value=None)
    connector = PriceStationConnector(repository)
    assert await connector.get_best_prices_for_location(14.5995, 120.9842, []) == {}


@pytest.mark.asyncio
async def test_best_prices_grouped_by_fuel_type(repository, station, price):
    repository.get_region_prices_for_week = AsyncMock(return_value=[price])
    connector = PriceStationConnector(repository)

    result = await connector.get_best_prices_for_location(14.5995, 120.9842, [station])

    assert list(result) == ["premium gasoline"]
    assert len(result["premium gasoline"]) == 1
    item = result["premium gasoline"][0]
    assert isinstance(item, BestPriceItem)
    assert item.price == 61.75
    assert item.station_id == "station-1"
    assert item.station_name == "Shell Station"
    assert item.area == "Manila"
    assert item.rank == 1
    assert item.distance_km == pytest.approx(0.0, abs=1e-6)


@pytest.mark.asyncio
async def test_best_prices_sorted_and_limited(repository, station):
    amounts = [56.0, 50.0, 54.0, 52.0, 55.0, 51.0, 53.0]
    prices = [
        make_price(id=f"p{i}", fuel_type="Diesel", common_price=amount, min_price=amount, max_price=amount)
        for i, amount in enumerate(amounts)
    ]
    repository.get_region_prices_for_week = AsyncMock(return_value=prices)
    connector = PriceStationConnector(repository)

    result = await connector.get_best_prices_for_location(14.6, 120.98, [station], limit=5)

    diesel = result["diesel"]
    assert [item.price for item in diesel] == [50.0, 51.0, 52.0, 53.0, 54.0]
    assert [item.rank for item in diesel] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_best_prices_keeps_unmatched_prices(repository, station):
    repository.get_region_prices_for_week = AsyncMock(
        return_value=[make_price(brand="Mismatch", area="Cebu", fuel_type="Kerosene")]
    )
    connector = PriceStationConnector(repository)

    result = await connector.get_best_prices_for_location(14.5995, 120.9842, [station])

    item = result["kerosene"][0]
    assert item.station_id is None
    assert item.distance_km is None
    assert item.match_confidence == pytest.approx(0.3)
    assert item.confidence_level == ConfidenceLevel.LOW


@pytest.mark.asyncio
async def test_best_prices_fetch_failure(repository, station):
    repository.get_region_prices_for_week = AsyncMock(side_effect=TimeoutError("slow backend"))
    connector = PriceStationConnector(repository)
    assert await connector.get_best_prices_for_location(14.5995, 120.9842, [station]) == {}


# matchPricesWithStations

def test_match_prices_with_stations_empty(repository):
    connector = PriceStationConnector(repository)
    assert connector.match_prices_with_stations([], []) == {}


def test_match_prices_with_stations_groups_by_normalized_type(repository, station, price):
    connector = PriceStationConnector(repository)

    result = connector.match_prices_with_stations([price], [station])

    assert list(result) == ["premium gasoline"]
    assert len(result["premium gasoline"]) == 1
    assert result["premium gasoline"][0].confidence >= 0.9


def test_match_prices_with_stations_one_entry_per_station(repository, station):
    connector = PriceStationConnector(repository)
    prices = [
        make_price(id="expensive", fuel_type="Diesel", common_price=60.0),
        make_price(id="cheap", fuel_type="DIESEL", common_price=55.0),
    ]

    result = connector.match_prices_with_stations(prices, [station])

    assert [m.price.id for m in result["diesel"]] == ["cheap"]


def test_match_prices_with_stations_uses_injected_normalizer(repository, station):
    connector = PriceStationConnector(repository, fuel_type_normalizer=lambda raw: raw.upper())
    result = connector.match_prices_with_stations([make_price()], [station])
    assert list(result) == ["PREMIUM GASOLINE"]


def test_failing_normalizer_falls_back_to_lowercase(repository, station):
    def broken(raw):
        raise RuntimeError("normalizer unavailable")

    connector = PriceStationConnector(repository, fuel_type_normalizer=broken)
    result = connector.match_prices_with_stations([make_price(fuel_type=" RON 95 ")], [station])
    assert list(result) == ["ron 95"]


# getPriceHistory

@pytest.mark.asyncio
async def test_price_history_invalid_area(repository):
    connector = PriceStationConnector(repository)
    assert await connector.get_price_history("Invalid Area", "Premium Gasoline") == []


@pytest.mark.asyncio
async def test_price_history_sorted_by_week_descending(repository):
    repository.get_historical_prices = AsyncMock(
        return_value=[
            make_price(id="a", week_of="2023-43"),
            make_price(id="b", week_of="2023-44"),
            make_price(id="c", week_of="2023-44", fuel_type="Diesel"),
        ]
    )
    connector = PriceStationConnector(repository)

    result = await connector.get_price_history("Manila", "Premium Gasoline")

    assert [p.week_of for p in result] == ["2023-44", "2023-43"]
    repository.get_historical_prices.assert_awaited_once_with("Manila", "Premium Gasoline")


@pytest.mark.asyncio
async def test_price_history_weeks_and_best_per_week(repository):
    repository.get_historical_prices = AsyncMock(
        return_value=[
            make_price(id="ncr-44", area="NCR", week_of="2023-44"),
            make_price(id="manila-44", area="Manila", week_of="2023-44"),
            make_price(id="manila-43", area="Manila", week_of="2023-43"),
            make_price(id="manila-42", area="Manila", week_of="2023-42"),
        ]
    )
    connector = PriceStationConnector(repository)

    recent = await connector.get_price_history("Manila", "RON 95", weeks=2)
    assert [p.id for p in recent] == ["ncr-44", "manila-44", "manila-43"]

    best = await connector.get_price_history("Manila", "RON 95", best_per_week=True)
    assert [p.id for p in best] == ["manila-44", "manila-43", "manila-42"]


@pytest.mark.asyncio
async def test_price_history_swallows_query_errors(repository):
    repository.get_historical_prices = AsyncMock(side_effect=Exception("Network error"))
    connector = PriceStationConnector(repository)
    assert await connector.get_price_history("Manila", "Premium") == []
