"""
Pure ordering, grouping and deduplication helpers. None of these mutate their inputs.
"""
import re
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from pricematch.geo import calculate_distance
from pricematch.models import (
    Coordinates,
    FuelPrice,
    GasStation,
    PriceMatchResult,
    PriceStationMatch,
    WeekId,
)
from pricematch.normalization.fuel import fuel_category, is_valid_price, normalize_fuel_type

MatchLike = TypeVar("MatchLike", PriceMatchResult, PriceStationMatch)

_WEEK_PATTERN = re.compile(r"^(\d{4})-W?(\d{1,2})$", re.IGNORECASE)


def sort_prices_by_price(prices: Sequence[FuelPrice], ascending: bool = True) -> List[FuelPrice]:
    return sorted(prices or [], key=lambda p: p.common_price or 0.0, reverse=not ascending)


def sort_prices_by_brand(prices: Sequence[FuelPrice], ascending: bool = True) -> List[FuelPrice]:
    return sorted(prices or [], key=lambda p: (p.brand or "").lower(), reverse=not ascending)


def sort_stations_by_distance(
    stations: Sequence[GasStation],
    origin: Union[Coordinates, Tuple[float, float]],
) -> List[GasStation]:
    """
    Copies of the stations with `distance` (km) attached, nearest first.

    Stations without coordinates keep distance None and go last.
    """
    if isinstance(origin, tuple):
        origin = Coordinates(latitude=origin[0], longitude=origin[1])

    decorated = [
        replace(
            station,
            distance=calculate_distance(origin, station.coordinates) if station.coordinates else None,
        )
        for station in stations or []
    ]
    return sorted(decorated, key=lambda s: (s.distance is None, s.distance or 0.0))


def week_sort_key(week: Optional[WeekId]) -> Tuple[int, int, str]:
    """
    Sortable (ISO year, ISO week, text) key for a week identifier.

    Accepts "2023-44", "2023-W44", ISO dates and date/datetime objects.
    """
    if isinstance(week, datetime):
        week = week.date()
    if isinstance(week, date):
        iso = week.isocalendar()
        return (iso[0], iso[1], week.isoformat())

    text = str(week or "").strip()
    match = _WEEK_PATTERN.match(text)
    if match:
        return (int(match.group(1)), int(match.group(2)), text)
    try:
        iso = date.fromisoformat(text[:10]).isocalendar()
        return (iso[0], iso[1], text)
    except ValueError:
        return (0, 0, text)


def sort_prices_by_week_descending(prices: Sequence[FuelPrice]) -> List[FuelPrice]:
    return sorted(prices or [], key=lambda p: week_sort_key(p.week_of), reverse=True)


def group_prices_by_week(prices: Iterable[FuelPrice]) -> Dict[str, List[FuelPrice]]:
    grouped: Dict[str, List[FuelPrice]] = defaultdict(list)
    for price in prices or []:
        key = price.week_of.isoformat() if isinstance(price.week_of, date) else str(price.week_of)
        grouped[key].append(price)
    return dict(grouped)


def find_best_price_for_each_week(
    prices_by_week: Dict[str, List[FuelPrice]],
    exact_area: str,
) -> List[FuelPrice]:
    """One record per week: a valid price in the exact area, else the first valid one, else the first."""
    results: List[FuelPrice] = []
    for week_prices in prices_by_week.values():
        if not week_prices:
            continue
        valid = [p for p in week_prices if is_valid_price(p.common_price)]
        if not valid:
            results.append(week_prices[0])
            continue
        exact = next((p for p in valid if p.area == exact_area), None)
        results.append(exact or valid[0])
    return results


def _confidence_of(result: MatchLike) -> float:
    if isinstance(result, PriceMatchResult):
        return result.match_confidence
    return result.confidence


def _price_result_key(result: MatchLike) -> Tuple[int, float]:
    # valid prices first by amount; invalid ones by confidence
    if is_valid_price(result.price.common_price):
        return (0, result.price.common_price)
    return (1, -_confidence_of(result))


def sort_price_results(results: Sequence[MatchLike]) -> List[MatchLike]:
    return sorted(results or [], key=_price_result_key)


def _should_replace(existing: Optional[MatchLike], candidate: MatchLike) -> bool:
    if existing is None:
        return True
    existing_valid = is_valid_price(existing.price.common_price)
    candidate_valid = is_valid_price(candidate.price.common_price)
    if candidate_valid != existing_valid:
        return candidate_valid
    return _confidence_of(candidate) > _confidence_of(existing)


def deduplicate_by_fuel_type(
    results: Iterable[MatchLike],
    normalizer: Callable[[str], str] = normalize_fuel_type,
) -> List[MatchLike]:
    """Keep one result per normalized fuel type; valid prices win, then higher confidence."""
    by_type: Dict[str, MatchLike] = {}
    for result in results or []:
        key = normalizer(result.price.fuel_type)
        if _should_replace(by_type.get(key), result):
            by_type[key] = result
    return list(by_type.values())


def sort_deduplicated_results(
    results: Sequence[MatchLike],
    normalizer: Callable[[str], str] = normalize_fuel_type,
) -> List[MatchLike]:
    """Valid prices first, then fuel category, then the raw fuel type."""
    return sorted(
        results or [],
        key=lambda r: (
            not is_valid_price(r.price.common_price),
            fuel_category(normalizer(r.price.fuel_type)),
            r.price.fuel_type,
        ),
    )


def deduplicate_by_station(matches: Iterable[PriceStationMatch]) -> List[PriceStationMatch]:
    seen = set()
    deduped: List[PriceStationMatch] = []
    for match in matches or []:
        if match.station.id in seen:
            continue
        seen.add(match.station.id)
        deduped.append(match)
    return deduped


def process_matches_for_fuel_type(matches: Sequence[MatchLike], max_results: int) -> List[MatchLike]:
    """
    Front of a fuel-type group: sorted results capped at max_results.

    When fewer than 3 results carry a valid price, every valid one is kept and
    the remaining slots are filled with invalid ones.
    """
    ordered = sort_price_results(matches)
    valid = [m for m in ordered if is_valid_price(m.price.common_price)]
    if len(valid) >= 3 or len(ordered) <= max_results:
        return ordered[:max_results]
    invalid = [m for m in ordered if not is_valid_price(m.price.common_price)]
    return valid + invalid[: max(max_results - len(valid), 0)]
