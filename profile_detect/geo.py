"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius in meters


class InvalidCoordinateError(ValueError):
    """Raised when a latitude/longitude cannot be parsed or is out of range."""


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def is_inside_circle(
    lat: float,
    lon: float,
    center_lat: float,
    center_lon: float,
    radius_m: float,
) -> bool:
    """Check whether a point is inside or on the boundary of a circle geofence."""

    return haversine_m(lat, lon, center_lat, center_lon) <= radius_m


def parse_coordinate(value: str | float | int, kind: str) -> float:
    """Parse one latitude or longitude value.

    Args:
        value: Text (e.g. a query parameter) or a number.
        kind: "latitude" or "longitude"; selects the valid range.

    Returns:
        The value in decimal degrees.

    Raises:
        InvalidCoordinateError: If the value is not a finite number in range.
    """

    limit = 90.0 if kind == "latitude" else 180.0
    if isinstance(value, bool):
        raise InvalidCoordinateError(f"invalid {kind}: {value!r}")
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinateError(f"invalid {kind}: {value!r}") from exc
    if not math.isfinite(number) or not -limit <= number <= limit:
        raise InvalidCoordinateError(f"{kind} out of range: {value!r}")
    return number


def parse_lat_lng(lat: str | float, lng: str | float) -> tuple[float, float]:
    """Parse a latitude/longitude pair."""

    return parse_coordinate(lat, "latitude"), parse_coordinate(lng, "longitude")
