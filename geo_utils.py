# Pure geometry and unit helpers shared by the route service and the map renderer.

import math

from api_structures import Coordinates, Location

EARTH_RADIUS_KM = 6371.0


class InvalidLocationError(ValueError):
    """Raised when a location's coordinates are missing or cannot be used."""


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Rounds .5 away from zero for positive values (2.5 -> 3), unlike round()."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def minutes_from_seconds(seconds: float) -> int:
    return int(round_half_up(seconds / 60))


def km_from_meters(meters: float) -> float:
    return round_half_up(meters / 1000, 1)


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _parse_degrees(value, name: str, limit: float, location: Location) -> float:
    try:
        degrees = float(value)
    except (TypeError, ValueError):
        raise InvalidLocationError(
            f"Invalid {name} {value!r} for location '{location.formatted}'") from None
    if not math.isfinite(degrees) or abs(degrees) > limit:
        raise InvalidLocationError(
            f"Invalid {name} {value!r} for location '{location.formatted}'")
    return degrees


def parse_coordinates(location: Location | None) -> Coordinates:
    """
    Converts a Location's raw lat/lon into Coordinates.
    Anything that does not parse to a finite number in geographic range
    raises InvalidLocationError instead of turning into 0 or NaN.
    """
    if location is None:
        raise InvalidLocationError("Location is missing")
    lat = _parse_degrees(location.lat, "latitude", 90.0, location)
    lon = _parse_degrees(location.lon, "longitude", 180.0, location)
    return Coordinates(lat=lat, lon=lon)
