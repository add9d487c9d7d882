"""
Lookup structures over a station snapshot for candidate selection.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from pricematch.models import GasStation
from pricematch.normalization.areas import city_key
from pricematch.normalization.brands import normalize_brand_name


def group_stations_by_city(stations: Iterable[GasStation]) -> Dict[str, List[GasStation]]:
    """Stations keyed by lower-cased normalized city."""
    grouped: Dict[str, List[GasStation]] = defaultdict(list)
    for station in stations or []:
        grouped[city_key(station.city)].append(station)
    return dict(grouped)


def group_stations_by_brand_and_city(
    stations: Iterable[GasStation],
) -> Dict[Tuple[str, str], List[GasStation]]:
    """Stations keyed by (canonical brand, lower-cased normalized city)."""
    grouped: Dict[Tuple[str, str], List[GasStation]] = defaultdict(list)
    for station in stations or []:
        grouped[(normalize_brand_name(station.brand), city_key(station.city))].append(station)
    return dict(grouped)


@dataclass
class StationIndex:
    """Immutable snapshot of stations grouped for a single matching pass."""
    stations: List[GasStation]
    by_city: Dict[str, List[GasStation]] = field(default_factory=dict)
    by_brand_city: Dict[Tuple[str, str], List[GasStation]] = field(default_factory=dict)

    @classmethod
    def build(cls, stations: Iterable[GasStation]) -> "StationIndex":
        snapshot = list(stations or [])
        return cls(
            stations=snapshot,
            by_city=group_stations_by_city(snapshot),
            by_brand_city=group_stations_by_brand_and_city(snapshot),
        )

    def in_city(self, city: str) -> List[GasStation]:
        return self.by_city.get(city_key(city), [])

    def with_brand_in_city(self, brand: str, city: str) -> List[GasStation]:
        return self.by_brand_city.get((normalize_brand_name(brand), city_key(city)), [])

    def __len__(self) -> int:
        return len(self.stations)
