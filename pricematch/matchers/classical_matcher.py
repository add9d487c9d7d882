from pricematch.config import (
    AREA_WEIGHT,
    BRAND_WEIGHT,
    HIGH_CONFIDENCE,
    MATCH_CONFIDENCE_FLOOR,
    MEDIUM_CONFIDENCE,
)
from pricematch.models import ConfidenceLevel, FuelPrice, GasStation
from pricematch.normalization.areas import calculate_area_city_match_confidence
from pricematch.normalization.brands import calculate_brand_similarity


def calculate_match_confidence(
    price: FuelPrice,
    station: GasStation,
    brand_weight: float = BRAND_WEIGHT,
    area_weight: float = AREA_WEIGHT,
) -> float:
    """
    Score how likely a weekly price observation belongs to a station.

    Args:
        price (FuelPrice): Price record with loose brand/area text.
        station (GasStation): Candidate station.
        brand_weight (float): Weight for the brand similarity score (default=0.7).
        area_weight (float): Weight for the area/city score (default=0.3).

    Returns:
        float: Weighted confidence clamped to [0, 1].
    """
    brand_score = calculate_brand_similarity(price.brand, station.brand)
    area_score = calculate_area_city_match_confidence(price.area, station.city)
    total_score = (brand_weight * brand_score) + (area_weight * area_score)
    return max(0.0, min(total_score, 1.0))


def is_match_valid(confidence: float, threshold: float = MATCH_CONFIDENCE_FLOOR) -> bool:
    return confidence >= threshold


def confidence_level(confidence: float) -> ConfidenceLevel:
    """Bucket a numeric confidence: High >= 0.8, Medium >= 0.5, else Low."""
    if confidence >= HIGH_CONFIDENCE:
        return ConfidenceLevel.HIGH
    if confidence >= MEDIUM_CONFIDENCE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
