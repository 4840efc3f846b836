"""
Geospatial helpers shared by the proximity engine.
"""

import math
from typing import Optional

from app.core.errors import InvalidGeometry

# Mean Earth radius in kilometers (spherical approximation)
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points using the Haversine formula.

    Args:
        lat1, lon1: First point coordinates in decimal degrees
        lat2, lon2: Second point coordinates in decimal degrees

    Returns:
        Distance in kilometers
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + \
        math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_coordinates(lat, lng) -> None:
    """Raise InvalidGeometry unless (lat, lng) is a finite WGS-84 point."""
    if not _is_number(lat) or not -90 <= lat <= 90:
        raise InvalidGeometry(f"Latitude must be between -90 and 90, got {lat!r}")
    if not _is_number(lng) or not -180 <= lng <= 180:
        raise InvalidGeometry(f"Longitude must be between -180 and 180, got {lng!r}")


def validate_radius(radius_km, max_radius_km: Optional[float] = None) -> None:
    if not _is_number(radius_km) or radius_km <= 0:
        raise InvalidGeometry(f"Radius must be a positive number of kilometers, got {radius_km!r}")
    if max_radius_km is not None and radius_km > max_radius_km:
        raise InvalidGeometry(f"Radius must not exceed {max_radius_km} km, got {radius_km}")


def has_coordinates(lat, lng) -> bool:
    return _is_number(lat) and _is_number(lng)
