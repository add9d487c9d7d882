"""
Station search helpers over the StationSearch capability.
"""
from typing import List

from loguru import logger

from pricematch.interfaces import StationSearch
from pricematch.models import GasStation


async def perform_primary_search(query: str, search: StationSearch) -> List[GasStation]:
    """Plain lookup; [] on failure."""
    if not query or not query.strip():
        return []
    try:
        return list(await search.search_stations(query.strip()) or [])
    except Exception as e:
        logger.debug(f"Station search failed for '{query}': {e}")
        return []


async def perform_advanced_search(query: str, search: StationSearch) -> List[GasStation]:
    """
    Brand + place lookup for queries like "Shell Makati".

    The first token is searched as the brand and the results are kept when the
    second token appears in the station's city or address.
    """
    parts = (query or "").split()
    if len(parts) < 2:
        return []

    brand, place = parts[0], parts[1].lower()
    try:
        brand_matches = await search.search_stations(brand) or []
    except Exception as e:
        logger.debug(f"Advanced station search failed for '{query}': {e}")
        return []

    return [
        station
        for station in brand_matches
        if place in (station.city or "").lower() or place in (station.address or "").lower()
    ]
