# pricematch/matchers/matching_orchestrator.py

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from loguru import logger

from pricematch.config import BEST_PRICES_LIMIT, EXACT_MATCH_CONFIDENCE, UNMATCHED_PRICE_CONFIDENCE
from pricematch.geo import calculate_distance
from pricematch.interfaces import FuelTypeNormalizer, PriceRepository
from pricematch.matchers.classical_matcher import (
    calculate_match_confidence,
    confidence_level,
    is_match_valid,
)
from pricematch.matchers.price_matcher import (
    adjust_confidence_for_invalid_price,
    find_exact_station_matches,
    find_matching_stations,
)
from pricematch.matchers.station_index import StationIndex
from pricematch.models import (
    BestPriceItem,
    ConfidenceLevel,
    Coordinates,
    FuelPrice,
    GasStation,
    PriceMatchResult,
    PriceStationMatch,
)
from pricematch.normalization.fuel import normalize_fuel_type
from pricematch.sorters import (
    deduplicate_by_fuel_type,
    deduplicate_by_station,
    find_best_price_for_each_week,
    group_prices_by_week,
    process_matches_for_fuel_type,
    sort_deduplicated_results,
    sort_price_results,
    sort_prices_by_week_descending,
    week_sort_key,
)


class PriceStationConnector:
    """
    Best-effort linkage between weekly fuel prices and concrete stations.

    Every collaborator call is awaited in sequence (week -> prices -> match).
    A failing collaborator degrades the operation to an empty result; nothing
    from the repository is ever re-raised to the caller.
    """

    def __init__(
        self,
        repository: PriceRepository,
        fuel_type_normalizer: FuelTypeNormalizer = normalize_fuel_type,
        best_prices_limit: int = BEST_PRICES_LIMIT,
    ):
        self.repository = repository
        self.fuel_type_normalizer = fuel_type_normalizer
        self.best_prices_limit = best_prices_limit

    def _normalize(self, raw_fuel_type: str) -> str:
        try:
            return self.fuel_type_normalizer(raw_fuel_type)
        except Exception as e:
            logger.warning(f"⚠️ Fuel type normalizer failed for '{raw_fuel_type}': {e}")
            return (raw_fuel_type or "").strip().lower()

    def find_matching_stations(
        self,
        price: FuelPrice,
        stations: Sequence[GasStation],
    ) -> List[PriceStationMatch]:
        return find_matching_stations(price, stations)

    async def get_prices_for_station(self, station: GasStation) -> List[PriceMatchResult]:
        """
        Latest-week prices that belong to a station, one per normalized fuel type.

        Args:
            station (GasStation): Station to look up.

        Returns:
            List[PriceMatchResult]: Valid prices first, then by fuel category.
                                    Empty when there is no week, no data, or a fetch fails.
        """
        try:
            latest_week = await self.repository.get_latest_week()
            if not latest_week:
                logger.debug(f"No price week available for station {station.id}")
                return []

            prices = list(await self.repository.get_prices_for_week(latest_week) or [])
            if not prices:
                return []

            results: List[PriceMatchResult] = []
            exact = find_exact_station_matches(station, prices)
            if exact:
                scored = [(price, EXACT_MATCH_CONFIDENCE) for price in exact]
            else:
                scored = [(price, calculate_match_confidence(price, station)) for price in prices]
                scored = [(price, conf) for price, conf in scored if is_match_valid(conf)]

            for price, confidence in scored:
                confidence = adjust_confidence_for_invalid_price(confidence, price)
                results.append(
                    PriceMatchResult(
                        price=price,
                        station_id=station.id,
                        station_name=station.name,
                        match_confidence=confidence,
                        confidence_level=confidence_level(confidence),
                    )
                )

            deduped = deduplicate_by_fuel_type(results, self._normalize)
            logger.debug(
                f"Station {station.id}: deduplication reduced {len(results)} matches "
                f"to {len(deduped)} fuel types"
            )
            return sort_deduplicated_results(deduped, self._normalize)
        except Exception as e:
            logger.warning(f"⚠️ get_prices_for_station failed for {station.id}: {e}")
            return []

    async def get_best_prices_for_location(
        self,
        latitude: float,
        longitude: float,
        stations: Sequence[GasStation],
        limit: Optional[int] = None,
    ) -> Dict[str, List[BestPriceItem]]:
        """
        Cheapest region prices near a location, grouped by normalized fuel type.

        Args:
            latitude (float): Reference latitude in degrees.
            longitude (float): Reference longitude in degrees.
            stations (Sequence[GasStation]): Candidate stations near the location.
            limit (Optional[int]): Entries kept per fuel type (default: best_prices_limit).

        Returns:
            Dict[str, List[BestPriceItem]]: Ranked entries per fuel type; {} when
                                            there is no week, no station, or a fetch fails.
        """
        limit = self.best_prices_limit if limit is None else limit
        try:
            latest_week = await self.repository.get_latest_week()
            if not latest_week or not stations:
                return {}

            prices = list(await self.repository.get_region_prices_for_week(latest_week) or [])
            index = StationIndex.build(stations)
            by_type: Dict[str, List[PriceMatchResult]] = defaultdict(list)

            for price in prices:
                matches = find_matching_stations(price, index.stations, index=index)
                if matches:
                    best = matches[0]
                    result = PriceMatchResult(
                        price=price,
                        station_id=best.station.id,
                        station_name=best.station.name,
                        match_confidence=best.confidence,
                        confidence_level=best.confidence_level,
                    )
                else:
                    confidence = adjust_confidence_for_invalid_price(UNMATCHED_PRICE_CONFIDENCE, price)
                    result = PriceMatchResult(
                        price=price,
                        station_id=None,
                        station_name=None,
                        match_confidence=confidence,
                        confidence_level=ConfidenceLevel.LOW,
                    )
                by_type[self._normalize(price.fuel_type)].append(result)

            origin = Coordinates(latitude=latitude, longitude=longitude)
            stations_by_id = {station.id: station for station in index.stations}
            best_prices: Dict[str, List[BestPriceItem]] = {}
            for fuel_type, results in by_type.items():
                front = process_matches_for_fuel_type(results, limit)
                best_prices[fuel_type] = [
                    self._to_best_price_item(result, rank, origin, stations_by_id)
                    for rank, result in enumerate(front, start=1)
                ]
                logger.debug(f"{fuel_type}: {len(results)} matches → {len(front)} results")
            return best_prices
        except Exception as e:
            logger.warning(f"⚠️ get_best_prices_for_location failed at ({latitude}, {longitude}): {e}")
            return {}

    @staticmethod
    def _to_best_price_item(
        result: PriceMatchResult,
        rank: int,
        origin: Coordinates,
        stations_by_id: Dict[str, GasStation],
    ) -> BestPriceItem:
        station = stations_by_id.get(result.station_id) if result.station_id else None
        distance = None
        if station is not None and station.coordinates is not None:
            distance = calculate_distance(origin, station.coordinates)
        return BestPriceItem(
            price=result.price.common_price,
            station_name=result.station_name,
            station_id=result.station_id,
            area=result.price.area,
            rank=rank,
            match_confidence=result.match_confidence,
            confidence_level=result.confidence_level,
            fuel_price=result.price,
            distance_km=distance,
        )

    def match_prices_with_stations(
        self,
        prices: Sequence[FuelPrice],
        stations: Sequence[GasStation],
    ) -> Dict[str, List[PriceStationMatch]]:
        """
        Best station per price, grouped by normalized fuel type.

        Within a group, valid prices come first (cheapest first) and a station
        appears at most once. Prices without an acceptable station are left out.
        """
        if not prices or not stations:
            return {}

        index = StationIndex.build(stations)
        grouped: Dict[str, List[PriceStationMatch]] = defaultdict(list)
        for price in prices:
            matches = find_matching_stations(price, index.stations, index=index)
            if matches:
                grouped[self._normalize(price.fuel_type)].append(matches[0])

        return {
            fuel_type: deduplicate_by_station(sort_price_results(matches))
            for fuel_type, matches in grouped.items()
        }

    async def get_price_history(
        self,
        area: str,
        fuel_type: str,
        weeks: Optional[int] = None,
        best_per_week: bool = False,
    ) -> List[FuelPrice]:
        """
        Historical prices for an area and fuel type, most recent week first.

        Args:
            area (str): Area the history is requested for.
            fuel_type (str): Raw fuel type; compared after normalization.
            weeks (Optional[int]): Keep only the most recent N distinct weeks.
            best_per_week (bool): Reduce to a single record per week.

        Returns:
            List[FuelPrice]: Empty for an unknown area, no data, or a failed fetch.
        """
        if not area or not fuel_type:
            return []
        try:
            records = list(await self.repository.get_historical_prices(area, fuel_type) or [])
            normalized_type = self._normalize(fuel_type)
            matching = [p for p in records if self._normalize(p.fuel_type) == normalized_type]

            if best_per_week:
                matching = find_best_price_for_each_week(group_prices_by_week(matching), area)

            ordered = sort_prices_by_week_descending(matching)
            if weeks:
                kept_weeks = []
                for price in ordered:
                    key = week_sort_key(price.week_of)
                    if key not in kept_weeks:
                        kept_weeks.append(key)
                kept = set(kept_weeks[:weeks])
                ordered = [p for p in ordered if week_sort_key(p.week_of) in kept]
            return ordered
        except Exception as e:
            logger.warning(f"⚠️ get_price_history failed for {area} / {fuel_type}: {e}")
            return []
