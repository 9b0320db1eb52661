"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final, Sequence

from track_recorder.models import TrackPoint

EARTH_RADIUS_M: Final[float] = 6_371_000.0


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


def point_distance_m(a: TrackPoint, b: TrackPoint) -> float:
    """Haversine distance between two track points."""

    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


@dataclass(frozen=True, slots=True)
class PathBounds:
    """Bounding box of a path (south-west and north-east corners)."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @property
    def center(self) -> tuple[float, float]:
        """(lat, lon) of the box center."""

        return (self.min_lat + self.max_lat) / 2.0, (self.min_lon + self.max_lon) / 2.0


def path_bounds(points: Sequence[TrackPoint]) -> PathBounds | None:
    """Compute the bounding box used to frame a recorded path.

    Returns:
        PathBounds, or None for an empty path.
    """

    if not points:
        return None
    lons = [p.longitude for p in points]
    lats = [p.latitude for p in points]
    return PathBounds(min_lon=min(lons), min_lat=min(lats), max_lon=max(lons), max_lat=max(lats))
