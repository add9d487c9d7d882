"""
Price <-> station matching: exact tier, best partial tier, and the
invalid-price confidence downgrade.
"""
from typing import List, Optional, Sequence

from loguru import logger

from pricematch.config import CITY_MATCH_SHORTCUT, EXACT_MATCH_CONFIDENCE, LOW_CONFIDENCE_CAP
from pricematch.matchers.classical_matcher import (
    calculate_match_confidence,
    confidence_level,
    is_match_valid,
)
from pricematch.matchers.station_index import StationIndex
from pricematch.models import FuelPrice, GasStation, PriceStationMatch, StationMatch
from pricematch.normalization.areas import areas_match, is_ncr_area
from pricematch.normalization.brands import normalize_brand_name
from pricematch.normalization.fuel import has_invalid_price_field


def adjust_confidence_for_invalid_price(confidence: float, price: FuelPrice) -> float:
    """
    Clamp confidence into the Low bucket when any price amount is missing or <= 0.

    Must be the last adjustment before a match is surfaced.
    """
    if has_invalid_price_field(price):
        return min(confidence, LOW_CONFIDENCE_CAP)
    return confidence


def find_exact_matches(
    price: FuelPrice,
    stations: Sequence[GasStation],
    index: Optional[StationIndex] = None,
) -> List[GasStation]:
    """Stations with the same canonical brand located in the price's area."""
    if not price.area:
        return []

    brand = normalize_brand_name(price.brand)
    if index is not None and not is_ncr_area(price.area):
        return list(index.with_brand_in_city(brand, price.area))

    # Broad NCR areas match on province, which the (brand, city) groups do not cover
    candidates = index.stations if index is not None else stations
    return [
        station
        for station in candidates or []
        if normalize_brand_name(station.brand) == brand
        and areas_match(price.area, station.city, station.province)
    ]


def find_exact_station_matches(station: GasStation, prices: Sequence[FuelPrice]) -> List[FuelPrice]:
    """Inverse of find_exact_matches: price records published for a station's brand and area."""
    brand = normalize_brand_name(station.brand)
    return [
        price
        for price in prices or []
        if normalize_brand_name(price.brand) == brand
        and areas_match(price.area, station.city, station.province)
    ]


def _best_of(price: FuelPrice, stations: Sequence[GasStation], floor: float = 0.0) -> StationMatch:
    best_station: Optional[GasStation] = None
    best_confidence = floor
    for station in stations:
        confidence = calculate_match_confidence(price, station)
        if confidence > best_confidence:
            best_confidence = confidence
            best_station = station
    return StationMatch(station=best_station, confidence=best_confidence)


def find_best_matching_station(
    price: FuelPrice,
    stations: Sequence[GasStation],
    index: Optional[StationIndex] = None,
) -> StationMatch:
    """
    Highest scoring station for a price when no exact match exists.

    Stations in the price's own city are scored first; the remaining stations
    are only scanned when the city best is below the shortcut threshold.

    Returns:
        StationMatch: station is None when the best score is below the acceptance floor.
    """
    if index is None:
        index = StationIndex.build(stations)

    city_stations = index.in_city(price.area)
    best = _best_of(price, city_stations)

    if best.confidence < CITY_MATCH_SHORTCUT:
        checked = {id(station) for station in city_stations}
        others = [station for station in index.stations if id(station) not in checked]
        other_best = _best_of(price, others, floor=best.confidence)
        if other_best.station is not None:
            best = other_best

    if best.station is None or not is_match_valid(best.confidence):
        return StationMatch(station=None, confidence=best.confidence)
    return best


def find_matching_stations(
    price: FuelPrice,
    stations: Sequence[GasStation],
    index: Optional[StationIndex] = None,
) -> List[PriceStationMatch]:
    """
    Stations that plausibly published a price, ordered by descending confidence.

    Exact brand+area hits are returned when there are any; otherwise the single
    best partial match (if it clears the floor). Empty station list -> [].
    """
    if not stations:
        return []

    if index is None:
        index = StationIndex.build(stations)

    matches: List[PriceStationMatch] = []
    exact = find_exact_matches(price, index.stations, index=index)
    if exact:
        scored = [(station, EXACT_MATCH_CONFIDENCE) for station in exact]
    else:
        best = find_best_matching_station(price, index.stations, index=index)
        scored = [(best.station, best.confidence)] if best.station is not None else []

    for station, confidence in scored:
        confidence = adjust_confidence_for_invalid_price(confidence, price)
        matches.append(
            PriceStationMatch(
                price=price,
                station=station,
                confidence=confidence,
                confidence_level=confidence_level(confidence),
            )
        )

    matches.sort(key=lambda m: m.confidence, reverse=True)
    logger.debug(f"🔎 {price.brand} / {price.area} / {price.fuel_type}: {len(matches)} station match(es)")
    return matches
