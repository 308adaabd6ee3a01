# SPDX-License-Identifier: Apache-2.0

"""
Great-circle distance helpers.

A tiny geometry layer so matching can rank cases by distance without
pulling in a GIS dependency.
"""

import math
from dataclasses import dataclass
from typing import Tuple, Union

from domain.exceptions import InvalidArgument

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    @classmethod
    def coerce(cls, value: Union["GeoPoint", Tuple[float, float]]) -> "GeoPoint":
        """Accept a GeoPoint or a ``(lat, lon)`` pair, rejecting non-finite input."""
        if isinstance(value, GeoPoint):
            point = value
        else:
            try:
                lat, lon = value
                point = cls(float(lat), float(lon))
            except (TypeError, ValueError):
                raise InvalidArgument(f"Expected a (latitude, longitude) pair, got {value!r}")
        _require_finite(point.lat, point.lon)
        return point


def _require_finite(*values: float) -> None:
    for v in values:
        if not isinstance(v, (int, float)) or isinstance(v, bool) or not math.isfinite(v):
            raise InvalidArgument(f"Coordinates must be finite numbers, got {v!r}")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute great-circle distance in kilometres between two points.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in kilometres on a sphere of Earth's mean radius

    Raises:
        InvalidArgument: If any coordinate is not a finite number
    """
    _require_finite(lat1, lon1, lat2, lon2)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # min() guards asin against rounding just above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Distance in kilometres between two GeoPoints."""
    return haversine_km(a.lat, a.lon, b.lat, b.lon)
