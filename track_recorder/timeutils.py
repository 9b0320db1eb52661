"""Time parsing and formatting utilities."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Iterable

from zoneinfo import ZoneInfo


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Europe/Berlin".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"Invalid time zone: {tz_name!r}. Example: Europe/Berlin") from exc


def now_ms() -> int:
    """Current wall-clock time as Unix epoch milliseconds."""

    return int(time.time() * 1000)


def dt_from_epoch_ms(epoch_ms: int, tz_name: str = "UTC") -> datetime:
    """Convert epoch milliseconds to a timezone-aware datetime."""

    tz = tzinfo_from_name(tz_name)
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz)


def epoch_ms_from_dt(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds.

    Args:
        dt: Datetime. If naive, will be treated as UTC.

    Returns:
        Epoch milliseconds.
    """

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def iso8601_utc(dt: datetime) -> str:
    """Render a datetime as "YYYY-MM-DDTHH:MM:SS.mmmZ" in UTC.

    Naive datetimes are taken as UTC.
    """

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    utc = dt.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_dt(text: str, tz_name: str) -> datetime:
    """Parse user-provided datetime text to a timezone-aware datetime.

    Supported formats:
      - "YYYY-MM-DD HH:MM:SS"
      - "YYYY-MM-DDTHH:MM:SS"
      - with optional timezone offset, e.g. "+02:00" or a trailing "Z"

    If timezone is missing, it will be assumed to be tz_name.

    Raises:
        ValueError: If cannot parse.
    """

    s = text.strip().replace("T", " ")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    tz = tzinfo_from_name(tz_name)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"Cannot parse time: {text!r}. Expected e.g. 2025-06-01 09:30:00") from exc

    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


@dataclass(frozen=True, slots=True)
class DeltaStats:
    """Sampling interval stats (seconds)."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def delta_stats(epoch_ms_sorted: Iterable[int]) -> DeltaStats | None:
    """Compute basic sampling-interval statistics.

    Args:
        epoch_ms_sorted: Epoch ms sorted ascending.

    Returns:
        DeltaStats or None if less than 2 points.
    """

    ms = list(epoch_ms_sorted)
    if len(ms) < 2:
        return None
    deltas = [(ms[i] - ms[i - 1]) / 1000.0 for i in range(1, len(ms)) if ms[i] >= ms[i - 1]]
    if not deltas:
        return None
    deltas.sort()
    n = len(deltas)
    median = deltas[n // 2] if n % 2 == 1 else 0.5 * (deltas[n // 2 - 1] + deltas[n // 2])
    p95 = deltas[int(0.95 * (n - 1))]
    return DeltaStats(
        count=n,
        min_s=deltas[0],
        median_s=median,
        p95_s=p95,
        max_s=deltas[-1],
    )
