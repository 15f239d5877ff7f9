import math

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points using the haversine formula."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def offset_point(lat: float, lng: float, angle: float, distance_deg: float) -> tuple:
    """Moves a point by `distance_deg` degrees in the direction of `angle` (radians)."""
    return lat + distance_deg * math.cos(angle), lng + distance_deg * math.sin(angle)


def format_coordinates(lat: float, lng: float) -> str:
    """Plain-text address used when geocoding is unavailable."""
    return f"{lat:.4f}, {lng:.4f}"
