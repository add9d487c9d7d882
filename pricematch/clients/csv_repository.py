"""
CSV-backed collaborators for offline runs: stations and weekly prices exported
from the backend tables.
"""
from typing import List, Optional, Sequence

import pandas as pd

from pricematch.interfaces import FuelTypeNormalizer
from pricematch.models import FuelPrice, GasStation, WeekId
from pricematch.normalization.fuel import normalize_fuel_type
from pricematch.sorters import week_sort_key

_TEXT_COLUMNS = {"id": str, "week_of": str, "area": str, "brand": str, "fuel_type": str}


def _rows(df: pd.DataFrame) -> List[dict]:
    """DataFrame rows as dicts with NaN converted to None."""
    records = []
    for _, row in df.iterrows():
        records.append({col: (None if pd.isna(val) else val) for col, val in row.items()})
    return records


def load_stations_from_csv(file_path: str, nrows: Optional[int] = None) -> List[GasStation]:
    """Load stations from CSV (coordinates as latitude/longitude columns, lists ';'-separated)."""
    df = pd.read_csv(file_path, nrows=nrows, dtype={"id": str, "days_open": str, "amenities": str})
    return [GasStation.from_row(row) for row in _rows(df)]


def load_prices_from_csv(file_path: str, nrows: Optional[int] = None) -> List[FuelPrice]:
    df = pd.read_csv(file_path, nrows=nrows, dtype=_TEXT_COLUMNS)
    return [FuelPrice.from_row(row) for row in _rows(df)]


class CsvPriceRepository:
    """PriceRepository over a fuel_prices CSV export, loaded once on first use."""

    def __init__(self, file_path: str, fuel_type_normalizer: FuelTypeNormalizer = normalize_fuel_type):
        self.file_path = file_path
        self.fuel_type_normalizer = fuel_type_normalizer
        self._prices: Optional[List[FuelPrice]] = None

    def _all(self) -> List[FuelPrice]:
        if self._prices is None:
            self._prices = load_prices_from_csv(self.file_path)
        return self._prices

    async def get_latest_week(self) -> Optional[WeekId]:
        weeks = [p.week_of for p in self._all() if p.week_of]
        if not weeks:
            return None
        return max(weeks, key=week_sort_key)

    async def get_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        key = week_sort_key(week)
        return [p for p in self._all() if week_sort_key(p.week_of) == key]

    async def get_region_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        return [
            p
            for p in await self.get_prices_for_week(week)
            if p.area.lower() in ("ncr", "metro manila") or "city" in p.area.lower()
        ]

    async def get_historical_prices(self, area: str, fuel_type: str) -> Sequence[FuelPrice]:
        needles = {fuel_type.lower(), self.fuel_type_normalizer(fuel_type).lower()}
        areas = {area.lower(), "ncr", "metro manila"}
        matching = [
            p
            for p in self._all()
            if p.area.lower() in areas and any(n in p.fuel_type.lower() for n in needles)
        ]
        return sorted(matching, key=lambda p: week_sort_key(p.week_of), reverse=True)
