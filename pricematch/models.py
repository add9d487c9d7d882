"""
Typed data models for the price-to-station matching engine.
All data structures used throughout the codebase should be defined here.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

WeekId = Union[str, date]


class ConfidenceLevel(str, Enum):
    """Display bucket derived from a numeric confidence."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class StationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TEMPORARY_CLOSED = "temporary_closed"
    PERMANENTLY_CLOSED = "permanently_closed"


@dataclass
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class OperatingHours:
    open: Optional[str] = None
    close: Optional[str] = None
    is_24_hours: bool = False
    days_open: List[str] = field(default_factory=list)


@dataclass
class GasStation:
    """Concrete station record owned by the persistence layer."""
    id: str
    name: str
    brand: str
    city: str
    province: str = ""
    address: str = ""
    coordinates: Optional[Coordinates] = None
    amenities: List[str] = field(default_factory=list)
    status: str = StationStatus.ACTIVE.value
    operating_hours: Optional[OperatingHours] = None
    distance: Optional[float] = None  # km, only set on copies made by sorters

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "GasStation":
        """Build a station from a backend row or a flattened CSV row."""
        coords = row.get("coordinates")
        if isinstance(coords, dict):
            coordinates = Coordinates(
                latitude=_to_float(coords.get("latitude")) or 0.0,
                longitude=_to_float(coords.get("longitude")) or 0.0,
            )
        elif _to_float(row.get("latitude")) is not None and _to_float(row.get("longitude")) is not None:
            coordinates = Coordinates(
                latitude=_to_float(row["latitude"]),
                longitude=_to_float(row["longitude"]),
            )
        else:
            coordinates = None

        hours = row.get("operating_hours")
        if isinstance(hours, dict):
            operating_hours = OperatingHours(
                open=hours.get("open"),
                close=hours.get("close"),
                is_24_hours=bool(hours.get("is_24_hours", hours.get("is24_hours", False))),
                days_open=list(hours.get("days_open") or []),
            )
        elif _to_str(row.get("open")) or _to_str(row.get("close")):
            operating_hours = OperatingHours(
                open=_to_str(row.get("open")) or None,
                close=_to_str(row.get("close")) or None,
                is_24_hours=_to_bool(row.get("is_24_hours")),
                days_open=_split_list(row.get("days_open")),
            )
        else:
            operating_hours = None

        return cls(
            id=_to_str(row.get("id")),
            name=_to_str(row.get("name")),
            brand=_to_str(row.get("brand")),
            city=_to_str(row.get("city")),
            province=_to_str(row.get("province")),
            address=_to_str(row.get("address")),
            coordinates=coordinates,
            amenities=_split_list(row.get("amenities")),
            status=_to_str(row.get("status")) or StationStatus.ACTIVE.value,
            operating_hours=operating_hours,
        )


@dataclass
class FuelPrice:
    """Weekly price observation tagged with a loose area/brand description."""
    id: str
    fuel_type: str
    common_price: Optional[float]
    min_price: Optional[float]
    max_price: Optional[float]
    area: str
    brand: str
    week_of: WeekId
    updated_at: Optional[Union[str, datetime]] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FuelPrice":
        week_of = row.get("week_of")
        if not isinstance(week_of, date):
            week_of = _to_str(week_of)
        return cls(
            id=_to_str(row.get("id")),
            fuel_type=_to_str(row.get("fuel_type")),
            common_price=_to_float(row.get("common_price")),
            min_price=_to_float(row.get("min_price")),
            max_price=_to_float(row.get("max_price")),
            area=_to_str(row.get("area")),
            brand=_to_str(row.get("brand")),
            week_of=week_of,
            updated_at=row.get("updated_at") or None,
        )


@dataclass
class StationMatch:
    """Best candidate station for one price (station is None when nothing qualifies)."""
    station: Optional[GasStation]
    confidence: float


@dataclass
class PriceStationMatch:
    """A price linked to a station with a numeric confidence."""
    price: FuelPrice
    station: GasStation
    confidence: float
    confidence_level: ConfidenceLevel


@dataclass
class PriceMatchResult:
    """A price matched against a single station (station-detail view)."""
    price: FuelPrice
    station_id: Optional[str]
    station_name: Optional[str]
    match_confidence: float
    confidence_level: ConfidenceLevel


@dataclass
class BestPriceItem:
    """One ranked entry of a per-fuel-type best price list."""
    price: Optional[float]
    station_name: Optional[str]
    station_id: Optional[str]
    area: str
    rank: int
    match_confidence: float
    confidence_level: ConfidenceLevel
    fuel_price: FuelPrice
    distance_km: Optional[float] = None


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _to_float(value: Any) -> Optional[float]:
    """Coerce a numeric-ish value to float, treating blanks and NaN as missing."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(str(value).replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(result):
        return None
    return result


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _to_str(value).lower() in {"1", "true", "yes", "y"}


def _split_list(value: Any) -> List[str]:
    # CSV exports store list columns as "a;b;c"
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    text = _to_str(value)
    if not text:
        return []
    return [part.strip() for part in text.split(";") if part.strip()]
