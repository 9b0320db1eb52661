"""Presentation helpers for trip statistics."""

from __future__ import annotations

import math

from track_recorder.models import TripStats


def format_moving_time(seconds: float) -> str:
    """Format seconds as zero-padded "HH:MM:SS".

    Fractional seconds are truncated and hours keep counting past 24.
    """

    if not math.isfinite(seconds) or seconds <= 0:
        return "00:00:00"
    s = int(seconds)
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"


def meters_to_km(meters: float) -> float:
    return meters / 1000.0


def format_distance_km(meters: float) -> str:
    return f"{meters_to_km(meters):.2f} km"


def format_speed_kmh(kmh: float) -> str:
    return f"{kmh:.1f} km/h"


def format_elevation_m(meters: float) -> str:
    return f"{meters:.0f} m"


def stats_panel(stats: TripStats) -> dict[str, str]:
    """Label -> display text for the four summary tiles."""

    return {
        "Distance": format_distance_km(stats.total_distance_m),
        "Speed": format_speed_kmh(stats.current_speed_kmh),
        "Elevation": format_elevation_m(stats.elevation_m),
        "Moving time": format_moving_time(stats.moving_time_s),
    }
