"""CSV replay source for position samples.

Stands in for the phone's location provider: rows are turned into
PositionSample objects and optionally thinned the way a location "watch"
subscription would (minimum time interval / minimum distance).
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from track_recorder.geo import haversine_m
from track_recorder.models import DEFAULT_TZ, PositionSample
from track_recorder.timeutils import epoch_ms_from_dt, parse_dt, tzinfo_from_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


@dataclass(frozen=True, slots=True)
class WatchOptions:
    """Delivery thresholds of a location subscription."""

    time_interval_ms: int = 2000
    distance_interval_m: float = 5.0

    @classmethod
    def unfiltered(cls) -> WatchOptions:
        return cls(time_interval_ms=0, distance_interval_m=0.0)


def _parse_float(value: str) -> float:
    return float(value.strip())


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return _parse_float(value)


def _parse_timestamp_ms(value: str, tz_name: str) -> int:
    """Accept epoch milliseconds or ISO-8601 text."""

    s = value.strip()
    if s.lstrip("-").isdigit():
        return int(s)
    return epoch_ms_from_dt(parse_dt(s, tz_name))


def _row_to_sample(row: dict[str, str], tz_name: str) -> PositionSample:
    speed = _parse_optional_float(row.get("speed"))
    if speed is not None and speed < 0:
        # -1 is the providers' "unknown speed" sentinel
        speed = None
    return PositionSample(
        latitude=_parse_float(row["latitude"]),
        longitude=_parse_float(row["longitude"]),
        altitude_m=_parse_optional_float(row.get("altitude")),
        speed_mps=speed,
        timestamp_ms=_parse_timestamp_ms(row["timestamp"], tz_name),
    )


def iter_position_samples(csv_path: str | Path, tz_name: str = DEFAULT_TZ) -> Iterator[PositionSample]:
    """Yield PositionSample objects from a samples CSV.

    Args:
        csv_path: Path to the CSV.
        tz_name: Zone for timestamps written as naive local text.

    Yields:
        Samples parsed successfully, in file order.

    Raises:
        KeyError: If a required column (timestamp/latitude/longitude) is missing.
        ValueError: If tz_name is not a known time zone.

    Notes:
        Columns: timestamp (epoch ms or ISO-8601), latitude, longitude,
        optional altitude and speed (m/s). Empty optional cells mean "not reported".
    """

    tzinfo_from_name(tz_name)
    p = Path(csv_path)
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return

        for row in reader:
            try:
                yield _row_to_sample(row, tz_name)
            except KeyError as exc:
                raise KeyError(f"CSV is missing required column {exc}. Columns found: {reader.fieldnames}") from exc
            except (ValueError, TypeError, AttributeError):
                # damaged or blank rows are skipped
                continue


def load_position_samples(
    csv_path: str | Path,
    tz_name: str = DEFAULT_TZ,
) -> tuple[list[PositionSample], CsvSummary]:
    """Load all samples into memory.

    Returns:
        (samples, summary)

    Raises:
        KeyError: If a required column is missing.
        ValueError: If tz_name is not a known time zone.
    """

    tzinfo_from_name(tz_name)
    p = Path(csv_path)
    rows_total = 0
    parsed: list[PositionSample] = []
    fieldnames: Sequence[str] = ()

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or ()
        missing = [c for c in ("timestamp", "latitude", "longitude") if fieldnames and c not in fieldnames]
        if missing:
            raise KeyError(f"CSV is missing required columns {missing}. Columns found: {list(fieldnames)}")
        for row in reader:
            rows_total += 1
            try:
                parsed.append(_row_to_sample(row, tz_name))
            except (KeyError, ValueError, TypeError, AttributeError):
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("Skipped %s unparseable CSV rows in %s", summary.rows_skipped, p)
    return parsed, summary


def filter_watch(samples: Iterable[PositionSample], options: WatchOptions) -> Iterator[PositionSample]:
    """Deliver only samples that pass both watch thresholds.

    The first sample is always delivered; later ones must be at least
    ``time_interval_ms`` after and ``distance_interval_m`` away from the last
    delivered sample.
    """

    last: PositionSample | None = None
    for s in samples:
        if last is not None:
            if s.timestamp_ms - last.timestamp_ms < options.time_interval_ms:
                continue
            if haversine_m(last.latitude, last.longitude, s.latitude, s.longitude) < options.distance_interval_m:
                continue
        last = s
        yield s
