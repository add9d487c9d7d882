"""
Case-insensitive filters over price and station collections.
A falsy filter value returns the input unchanged.
"""
from enum import Enum
from typing import List, Sequence, Union

from pricematch.models import FuelPrice, GasStation, StationStatus


def _text(value: Union[str, Enum, None]) -> str:
    if isinstance(value, Enum):
        value = value.value
    return (value or "").strip().lower()


def filter_prices_by_brand(prices: Sequence[FuelPrice], brand: str) -> List[FuelPrice]:
    if not brand:
        return list(prices or [])
    return [price for price in prices or [] if _text(price.brand) == _text(brand)]


def filter_prices_by_fuel_type(prices: Sequence[FuelPrice], fuel_type: str) -> List[FuelPrice]:
    if not fuel_type:
        return list(prices or [])
    return [price for price in prices or [] if _text(price.fuel_type) == _text(fuel_type)]


def filter_stations_by_status(
    stations: Sequence[GasStation],
    status: Union[StationStatus, str, None],
) -> List[GasStation]:
    if not status:
        return list(stations or [])
    return [station for station in stations or [] if _text(station.status) == _text(status)]


def filter_stations_by_amenity(stations: Sequence[GasStation], amenity: str) -> List[GasStation]:
    if not amenity:
        return list(stations or [])
    needle = _text(amenity)
    return [
        station
        for station in stations or []
        if any(needle in _text(a) for a in station.amenities or [])
    ]
