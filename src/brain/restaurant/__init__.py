# src/brain/restaurant/__init__.py
from .resolver import LocationResult, LocationStatus, RestaurantResolver, distance_km, extract_location
from .selection import Selection, extract_ordinal, select_from_list

__all__ = [
    "LocationResult",
    "LocationStatus",
    "RestaurantResolver",
    "Selection",
    "distance_km",
    "extract_location",
    "extract_ordinal",
    "select_from_list",
]
