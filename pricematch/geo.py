import math

from pricematch.models import Coordinates

EARTH_RADIUS_KM = 6371.0


def calculate_distance(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance in kilometers (haversine)."""
    d_lat = math.radians(target.latitude - origin.latitude)
    d_lon = math.radians(target.longitude - origin.longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.latitude))
        * math.cos(math.radians(target.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
