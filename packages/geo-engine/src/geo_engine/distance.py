import math

from geo_engine.models import GeoPoint

EARTH_RADIUS_METERS = 6_371_000


def haversine_distance_meters(start: GeoPoint, end: GeoPoint, radius: float = EARTH_RADIUS_METERS) -> float:
    """Great-circle distance; symmetric in its arguments and zero for equal points."""
    lat1, lng1, lat2, lng2 = map(math.radians, (start.lat, start.lng, end.lat, end.lng))
    half_chord = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    )
    return 2 * radius * math.asin(math.sqrt(min(1.0, half_chord)))


def haversine_distance_km(start: GeoPoint, end: GeoPoint) -> float:
    return haversine_distance_meters(start, end) / 1000.0
