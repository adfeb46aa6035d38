"""Great-circle helpers shared by the geo-search client and the scorer."""

from __future__ import annotations

import math

EARTH_RADIUS_METERS = 6_371_000.0


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_meters: float) -> tuple[float, float, float, float]:
    """
    Approximate box around a point as ``(min_lon, min_lat, max_lon, max_lat)``.

    Latitudes are clamped to the poles; longitudes are not wrapped.
    """
    d_lat = math.degrees(radius_meters / EARTH_RADIUS_METERS)
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    d_lon = math.degrees(radius_meters / (EARTH_RADIUS_METERS * cos_lat))
    return (
        lon - d_lon,
        max(-90.0, lat - d_lat),
        lon + d_lon,
        min(90.0, lat + d_lat),
    )
