"""Data models for position samples, track points and trip statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class PositionSample:
    """A single reading delivered by the location provider.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        altitude_m: Altitude in meters, or None when the device did not report one.
        speed_mps: Ground speed in meters/second, or None when unknown.
        timestamp_ms: Unix epoch milliseconds.
    """

    latitude: float
    longitude: float
    altitude_m: float | None
    speed_mps: float | None
    timestamp_ms: int

    @property
    def timestamp_s(self) -> float:
        """Unix epoch seconds as float."""

        return self.timestamp_ms / 1000.0


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """One recorded vertex of the path polyline (lon/lat order, like GeoJSON)."""

    longitude: float
    latitude: float


@dataclass(frozen=True, slots=True)
class TripStats:
    """Running statistics of a recording session.

    A new instance replaces the previous one on every ingested sample.
    """

    current_speed_kmh: float = 0.0
    total_distance_m: float = 0.0
    elevation_m: float = 0.0
    moving_time_s: float = 0.0
    last_update_ms: int = 0


@dataclass(frozen=True, slots=True)
class RecordedTrack:
    """A finalized session, ready for export."""

    points: tuple[TrackPoint, ...]
    stats: TripStats
    started_ms: int
    stopped_ms: int

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration between start and stop in seconds."""

        return max(0.0, (self.stopped_ms - self.started_ms) / 1000.0)


MPS_TO_KMH: Final[float] = 3.6
DEFAULT_MOVING_SPEED_MPS: Final[float] = 0.5
DEFAULT_CREATOR: Final[str] = "track-recorder"
DEFAULT_TZ: Final[str] = "UTC"
