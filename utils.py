"""
utils.py

Distance and color helpers shared by the annotation engine.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Dict, Optional, Tuple

LatLng = Tuple[float, float]

# Mean Earth radius in meters (same constant web map libraries use)
EARTH_RADIUS_M = 6371000.0

# Meters per degree of latitude on the sphere above
METERS_PER_DEGREE = math.pi * EARTH_RADIUS_M / 180.0

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def haversine_m(a: LatLng, b: LatLng) -> float:
    """
    Great-circle distance between two lat/lng points.

    Args:
        a: (lat, lng) in decimal degrees
        b: (lat, lng) in decimal degrees

    Returns:
        Distance in meters
    """
    lat1, lng1 = math.radians(a[0]), math.radians(a[1])
    lat2, lng2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def planar_m(a: LatLng, b: LatLng) -> float:
    """
    Equirectangular approximation, good for small extents.

    Longitude differences are scaled by the cosine of the mean latitude.
    """
    mean_lat = math.radians((a[0] + b[0]) / 2.0)
    dx = (b[1] - a[1]) * math.cos(mean_lat)
    dy = b[0] - a[0]
    return math.hypot(dx, dy) * METERS_PER_DEGREE


DISTANCE_FUNCTIONS: Dict[str, Callable[[LatLng, LatLng], float]] = {
    "haversine": haversine_m,
    "planar": planar_m,
}


def get_distance_function(method: str) -> Callable[[LatLng, LatLng], float]:
    """Look up a distance function by name ("haversine" or "planar")."""
    try:
        return DISTANCE_FUNCTIONS[method]
    except KeyError:
        raise ValueError(f"Unknown distance method: {method!r}") from None


def meters_to_degrees(meters: float, lat: float) -> Tuple[float, float]:
    """
    Convert a distance in meters to (dlat, dlng) degree spans at a latitude.

    Used to draw metric circles on a lat/lng scene.
    """
    dlat = meters / METERS_PER_DEGREE
    cos_lat = math.cos(math.radians(lat))
    dlng = dlat / cos_lat if abs(cos_lat) > 1e-12 else dlat
    return dlat, dlng


def same_point(a: LatLng, b: LatLng, tol: float = 1e-12) -> bool:
    """Check if two lat/lng points coincide within tol degrees."""
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def normalize_hex(s: str, fallback: Optional[str] = None) -> Optional[str]:
    """
    Normalize a hex color string to lowercase "#rrggbb" (or "#rrggbbaa").

    Args:
        s: Hex string like "#RGB", "#RRGGBB" or "RRGGBBAA"
        fallback: Value to return if parsing fails

    Returns:
        Normalized string or fallback
    """
    if not isinstance(s, str):
        return fallback
    m = _HEX_RE.match(s.strip())
    if not m:
        return fallback
    digits = m.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return "#" + digits
