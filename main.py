import asyncio
import csv
import os
import sys
from typing import Dict, List

from loguru import logger

from pricematch.clients import CsvPriceRepository, load_stations_from_csv
from pricematch.config import LOG_LEVEL, OUTPUT_CSV, PRICES_CSV, STATIONS_CSV
from pricematch.matchers.matching_orchestrator import PriceStationConnector
from pricematch.models import PriceStationMatch

OUTPUT_HEADER = [
    "fuel_type",
    "price_id",
    "brand",
    "area",
    "common_price",
    "station_id",
    "station_name",
    "confidence",
    "confidence_level",
]


def write_matches(output_path: str, grouped: Dict[str, List[PriceStationMatch]]) -> int:
    """Write one CSV row per surfaced match and return the row count."""
    rows = 0
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_HEADER)
        for fuel_type, matches in sorted(grouped.items()):
            for match in matches:
                writer.writerow([
                    fuel_type,
                    match.price.id,
                    match.price.brand,
                    match.price.area,
                    match.price.common_price,
                    match.station.id,
                    match.station.name,
                    f"{match.confidence:.2f}",
                    match.confidence_level.value,
                ])
                rows += 1
    return rows


async def main():
    """
    Match the latest week of exported prices against the exported stations.

    - Loads stations and prices from CSV.
    - Resolves the latest observation week and its prices.
    - Writes the per-fuel-type matches to the output CSV.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    stations = load_stations_from_csv(STATIONS_CSV)
    repository = CsvPriceRepository(PRICES_CSV)
    connector = PriceStationConnector(repository)

    latest_week = await repository.get_latest_week()
    if not latest_week:
        logger.warning(f"No price weeks found in {PRICES_CSV}")
        return
    prices = await repository.get_prices_for_week(latest_week)
    logger.info(f"Matching {len(prices)} prices from week {latest_week} against {len(stations)} stations")

    grouped = connector.match_prices_with_stations(prices, stations)

    if os.path.exists(OUTPUT_CSV):
        os.remove(OUTPUT_CSV)
    rows = write_matches(OUTPUT_CSV, grouped)
    logger.info(f"Wrote {rows} matches across {len(grouped)} fuel types to {OUTPUT_CSV}")


if __name__ == "__main__":
    asyncio.run(main())
