"""Text normalization for brands, areas and fuel types."""
from pricematch.normalization.brands import normalize_brand_name, calculate_brand_similarity
from pricematch.normalization.areas import normalize_city_name, calculate_area_city_match_confidence
from pricematch.normalization.fuel import normalize_fuel_type, is_valid_price

__all__ = [
    "normalize_brand_name",
    "calculate_brand_similarity",
    "normalize_city_name",
    "calculate_area_city_match_confidence",
    "normalize_fuel_type",
    "is_valid_price",
]
