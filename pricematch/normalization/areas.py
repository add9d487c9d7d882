"""
Area/city normalization and area-to-city match confidence.

Weekly price data is published per broad area ("NCR", "Metro Manila") or per
city, while stations carry a concrete city. These helpers bridge the two.
"""
from typing import Dict, List, Optional

from rapidfuzz import fuzz

from pricematch.config import FUZZY_THRESHOLD

NCR_CITY_LIST = [
    "Quezon City",
    "Manila City",
    "Makati City",
    "Pasig City",
    "Taguig City",
    "Pasay City",
    "Caloocan City",
    "Parañaque City",
    "Mandaluyong City",
    "Las Piñas City",
    "Marikina City",
    "Muntinlupa City",
    "San Juan City",
    "Valenzuela City",
    "Navotas City",
    "Malabon City",
    "Pateros",
]

AREA_MAPPING: Dict[str, List[str]] = {
    "NCR": NCR_CITY_LIST,
    "Metro Manila": NCR_CITY_LIST,
}

CITY_ALIASES: Dict[str, List[str]] = {
    "Manila City": ["Manila", "City of Manila"],
    "Quezon City": ["QC"],
    "Makati City": ["Makati", "City of Makati"],
    "Taguig City": ["Taguig", "BGC", "Bonifacio Global City"],
    "Pasig City": ["Pasig"],
    "Pasay City": ["Pasay"],
    "Caloocan City": ["Caloocan", "North Caloocan", "South Caloocan"],
    "Parañaque City": ["Parañaque", "Paranaque City", "Paranaque"],
}

NCR_AREAS = ("ncr", "metro manila")
NCR_PROVINCES = ("ncr", "metro manila")

# Carry no place information; every normalized city ends in "city"
GENERIC_AREA_WORDS = {"city", "of", "municipality"}


def normalize_city_name(city_name: str) -> str:
    """Map a city spelling to its standard form (e.g. "Manila" -> "Manila City")."""
    if not city_name:
        return ""

    value = city_name.strip()
    lowered = value.lower()

    for standard, aliases in CITY_ALIASES.items():
        if standard.lower() == lowered or any(alias.lower() == lowered for alias in aliases):
            return standard

    for standard, aliases in CITY_ALIASES.items():
        if standard.lower() in lowered or any(alias.lower() in lowered for alias in aliases):
            return standard

    if lowered.endswith("city") and not value.endswith(" City"):
        base_name = value[: lowered.rfind("city")].strip()
        return f"{base_name} City"

    return value


def city_key(city_name: str) -> str:
    """Lower-cased normalized city, used as a lookup key."""
    return normalize_city_name(city_name).lower()


def get_parent_area(city: str) -> Optional[str]:
    if not city:
        return None
    key = city_key(city)
    for area, cities in AREA_MAPPING.items():
        if any(city_key(c) == key for c in cities):
            return area
    return None


def get_cities_in_area(area: str) -> List[str]:
    if not area:
        return []
    if area in AREA_MAPPING:
        return AREA_MAPPING[area]
    lowered = area.strip().lower()
    for mapped_area, cities in AREA_MAPPING.items():
        if mapped_area.lower() == lowered:
            return cities
    return []


def is_ncr_area(area: str) -> bool:
    return bool(area) and area.strip().lower() in NCR_AREAS


def is_ncr_city(city: str) -> bool:
    return bool(city) and any(city_key(c) == city_key(city) for c in NCR_CITY_LIST)


def areas_match(area: str, city: str, province: str = "") -> bool:
    """
    Exact area/city comparison used by the exact-match tier.

    A broad NCR area matches any station whose province is NCR/Metro Manila.
    """
    if not area or not city:
        return False
    if city_key(area) == city_key(city):
        return True
    return is_ncr_area(area) and (province or "").strip().lower() in NCR_PROVINCES


def _place_words(normalized: str) -> List[str]:
    return [word for word in normalized.split() if word not in GENERIC_AREA_WORDS]


def calculate_area_city_match_confidence(area: str, city: str) -> float:
    """
    Score how likely a price's area describes a station's city.

    Args:
        area (str): Area text from the price record.
        city (str): City text from the station record.

    Returns:
        float: 1.0 direct, 0.9 city belongs to the area, 0.8 containment,
               0.5-0.7 shared words, 0.7 NCR fallback, 0.6 near-identical
               spelling, otherwise 0.1.
    """
    if not area or not city:
        return 0.0

    normalized_area = city_key(area)
    normalized_city = city_key(city)

    if normalized_area == normalized_city:
        return 1.0

    if any(city_key(c) == normalized_city for c in get_cities_in_area(area)):
        return 0.9

    if normalized_area in normalized_city or normalized_city in normalized_area:
        return 0.8

    area_words = _place_words(normalized_area)
    city_words = _place_words(normalized_city)
    common_words = [word for word in area_words if word in city_words]
    if common_words:
        return 0.5 + 0.2 * len(common_words) / max(len(area_words), len(city_words))

    if is_ncr_area(area) and is_ncr_city(city):
        return 0.7

    # Typos and dropped diacritics ("Paranaq City", "Las Pinas")
    if area_words and city_words and fuzz.ratio(" ".join(area_words), " ".join(city_words)) >= FUZZY_THRESHOLD:
        return 0.6

    return 0.1
