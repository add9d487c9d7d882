import pandas as pd
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pricematch.clients import (
    BackendError,
    CsvPriceRepository,
    SupabaseClient,
    SupabasePriceRepository,
    load_stations_from_csv,
)
from pricematch.matchers.matching_orchestrator import PriceStationConnector


@pytest.fixture
def prices_csv(tmp_path):
    path = tmp_path / "fuel_prices.csv"
    pd.DataFrame(
        [
            {"id": 1, "fuel_type": "Diesel", "common_price": 55.1, "min_price": 54.0, "max_price": 56.0,
             "area": "Manila", "brand": "Shell", "week_of": "2023-43"},
            {"id": 2, "fuel_type": "Diesel", "common_price": 56.2, "min_price": 55.0, "max_price": 57.0,
             "area": "Manila", "brand": "Shell", "week_of": "2023-44"},
            {"id": 3, "fuel_type": "RON 95", "common_price": None, "min_price": 60.0, "max_price": 62.0,
             "area": "NCR", "brand": "Petron", "week_of": "2023-44"},
            {"id": 4, "fuel_type": "Diesel", "common_price": 57.0, "min_price": 56.0, "max_price": 58.0,
             "area": "Cebu", "brand": "Caltex", "week_of": "2023-44"},
        ]
    ).to_csv(path, index=False)
    return str(path)


@pytest.fixture
def stations_csv(tmp_path):
    path = tmp_path / "gas_stations.csv"
    pd.DataFrame(
        [
            {"id": "s1", "name": "Shell Taft", "brand": "Shell", "city": "Manila", "province": "Metro Manila",
             "address": "Taft Ave", "latitude": 14.5995, "longitude": 120.9842,
             "amenities": "ATM;Car Wash", "status": "active", "open": "06:00", "close": "22:00",
             "is_24_hours": False, "days_open": "monday;tuesday"},
            {"id": "s2", "name": "Petron Ayala", "brand": "Petron", "city": "Makati City", "province": "Metro Manila",
             "address": None, "latitude": None, "longitude": None,
             "amenities": None, "status": "inactive", "open": None, "close": None,
             "is_24_hours": True, "days_open": None},
        ]
    ).to_csv(path, index=False)
    return str(path)


def test_load_stations_from_csv(stations_csv):
    stations = load_stations_from_csv(stations_csv)

    shell, petron = stations
    assert shell.id == "s1"
    assert shell.coordinates.latitude == pytest.approx(14.5995)
    assert shell.amenities == ["ATM", "Car Wash"]
    assert shell.operating_hours.days_open == ["monday", "tuesday"]
    assert petron.coordinates is None
    assert petron.amenities == []
    assert petron.address == ""
    assert petron.status == "inactive"


@pytest.mark.asyncio
async def test_csv_repository_queries(prices_csv):
    repo = CsvPriceRepository(prices_csv)

    assert await repo.get_latest_week() == "2023-44"

    week = await repo.get_prices_for_week("2023-44")
    assert [p.id for p in week] == ["2", "3", "4"]
    assert week[1].common_price is None

    region = await repo.get_region_prices_for_week("2023-44")
    assert [p.id for p in region] == ["3"]

    history = await repo.get_historical_prices("Manila", "Diesel")
    assert [p.week_of for p in history] == ["2023-44", "2023-43"]


@pytest.mark.asyncio
async def test_connector_over_csv_repository(prices_csv, stations_csv):
    connector = PriceStationConnector(CsvPriceRepository(prices_csv))
    shell = load_stations_from_csv(stations_csv)[0]

    result = await connector.get_prices_for_station(shell)

    assert [r.price.id for r in result] == ["2"]
    assert result[0].match_confidence == pytest.approx(0.9)


def test_supabase_client_requires_credentials():
    with patch("pricematch.clients.supabase_client.SUPABASE_URL", ""), \
         patch("pricematch.clients.supabase_client.SUPABASE_ANON_KEY", None):
        with pytest.raises(BackendError):
            SupabaseClient()


def test_supabase_client_headers():
    client = SupabaseClient(url="https://example.supabase.co/", api_key="anon-key")
    assert client.base_url == "https://example.supabase.co"
    assert client.headers["apikey"] == "anon-key"
    assert client.headers["Authorization"] == "Bearer anon-key"


@pytest.fixture
def backend():
    client = MagicMock()
    client.get_request = AsyncMock(return_value=[])
    return client


@pytest.mark.asyncio
async def test_supabase_repository_latest_week(backend):
    repo = SupabasePriceRepository(backend)
    assert await repo.get_latest_week() is None

    backend.get_request = AsyncMock(return_value=[{"week_of": "2023-44"}])
    assert await repo.get_latest_week() == "2023-44"
    table, params = backend.get_request.await_args.args
    assert table == "fuel_prices"
    assert ("order", "week_of.desc") in params


@pytest.mark.asyncio
async def test_supabase_repository_rows_to_prices(backend):
    backend.get_request = AsyncMock(
        return_value=[
            {"id": 7, "fuel_type": "Diesel", "common_price": "55.10", "min_price": 54, "max_price": None,
             "area": "NCR", "brand": "Shell", "week_of": "2023-44", "updated_at": "2023-11-01T00:00:00"},
        ]
    )
    repo = SupabasePriceRepository(backend)

    prices = await repo.get_region_prices_for_week("2023-44")

    assert prices[0].id == "7"
    assert prices[0].common_price == pytest.approx(55.1)
    assert prices[0].min_price == 54.0
    assert prices[0].max_price is None
    _, params = backend.get_request.await_args.args
    assert ("week_of", "eq.2023-44") in params


@pytest.mark.asyncio
async def test_supabase_repository_history_filter(backend):
    repo = SupabasePriceRepository(backend)

    await repo.get_historical_prices("Quezon City", "RON 95")

    _, params = backend.get_request.await_args.args
    filters = dict(params)["and"]
    assert 'fuel_type.ilike."*RON 95*"' in filters
    assert 'fuel_type.ilike."*premium gasoline*"' in filters
    assert 'area.eq."Quezon City"' in filters
