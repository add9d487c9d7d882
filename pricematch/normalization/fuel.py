"""
Fuel type canonicalization and price validity checks.
"""
import math
import re
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pricematch.models import FuelPrice

# Checked in order, so more specific labels come first
FUEL_TYPE_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("super premium gasoline", ["super premium", "ron 97", "ron 98", "ron 100"]),
    ("premium diesel", ["premium diesel", "diesel plus", "turbo diesel", "diesel max"]),
    ("premium gasoline", ["premium gasoline", "ron 95", "premium"]),
    ("unleaded gasoline", ["unleaded", "regular gasoline", "ron 91", "ron 92"]),
    ("diesel", ["diesel"]),
    ("kerosene", ["kerosene"]),
    ("lpg", ["auto lpg", "autogas", "lpg"]),
]

_RON_PATTERN = re.compile(r"\bron\s*-?\s*(\d+)")
_SPACES = re.compile(r"\s+")


def normalize_fuel_type(raw_fuel_type: str) -> str:
    """
    Canonical, lower-case fuel type used as a grouping key.

    "RON 95", "Gasoline (RON 95)" and "Premium Gasoline" all become
    "premium gasoline". Unknown labels are lower-cased with whitespace collapsed.
    """
    if not raw_fuel_type:
        return ""
    value = _SPACES.sub(" ", raw_fuel_type.strip().lower())
    value = _RON_PATTERN.sub(r"ron \1", value)
    for canonical, keywords in FUEL_TYPE_KEYWORDS:
        if any(keyword in value for keyword in keywords):
            return canonical
    return value


def fuel_category(normalized_type: str) -> str:
    """First word of a normalized type ("premium", "diesel", ...)."""
    return normalized_type.split(" ")[0] if normalized_type else ""


def is_valid_price(value: Optional[float]) -> bool:
    """A price amount is usable only when present and strictly positive."""
    if value is None:
        return False
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(amount) and amount > 0


def has_valid_price_data(price: FuelPrice) -> bool:
    """True when at least one of the min/common/max amounts is usable."""
    return (
        is_valid_price(price.min_price)
        or is_valid_price(price.common_price)
        or is_valid_price(price.max_price)
    )


def has_invalid_price_field(price: FuelPrice) -> bool:
    """True when any of the min/common/max amounts is missing or non-positive."""
    return not (
        is_valid_price(price.common_price)
        and is_valid_price(price.min_price)
        and is_valid_price(price.max_price)
    )


def count_valid_prices(prices: Iterable[FuelPrice]) -> int:
    return sum(1 for price in prices or [] if has_valid_price_data(price))


def group_prices_by_normalized_type(
    prices: Iterable[FuelPrice],
    normalizer: Callable[[str], str] = normalize_fuel_type,
) -> Dict[str, List[FuelPrice]]:
    grouped: Dict[str, List[FuelPrice]] = defaultdict(list)
    for price in prices or []:
        grouped[normalizer(price.fuel_type)].append(price)
    return dict(grouped)
