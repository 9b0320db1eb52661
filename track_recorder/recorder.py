"""Track recording state machine.

A TrackRecorder is driven by a single producer (the location provider) and is
not thread-safe: callers serialize start/ingest/stop themselves.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator, Sequence, overload

from track_recorder.geo import point_distance_m
from track_recorder.models import (
    DEFAULT_MOVING_SPEED_MPS,
    MPS_TO_KMH,
    PositionSample,
    RecordedTrack,
    TrackPoint,
    TripStats,
)
from track_recorder.timeutils import now_ms

logger = logging.getLogger(__name__)


class RecorderState(enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True, slots=True)
class RecorderConfig:
    """Parameters controlling stats aggregation."""

    # Speeds at or below this are treated as GPS jitter while standing still.
    moving_speed_threshold_mps: float = DEFAULT_MOVING_SPEED_MPS
    # Returns "now" as epoch ms; used to stamp session start/stop.
    clock: Callable[[], int] = now_ms


class PathView(Sequence[TrackPoint]):
    """Read-only snapshot of a session's points.

    The session list is append-only, so the first ``length`` items never change
    and the view does not need to copy them.
    """

    __slots__ = ("_points", "_length")

    def __init__(self, points: list[TrackPoint], length: int | None = None) -> None:
        self._points = points
        self._length = len(points) if length is None else length

    def __len__(self) -> int:
        return self._length

    @overload
    def __getitem__(self, index: int) -> TrackPoint: ...

    @overload
    def __getitem__(self, index: slice) -> list[TrackPoint]: ...

    def __getitem__(self, index: int | slice) -> TrackPoint | list[TrackPoint]:
        if isinstance(index, slice):
            return self._points[: self._length][index]
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("PathView index out of range")
        return self._points[index]

    def __iter__(self) -> Iterator[TrackPoint]:
        for i in range(self._length):
            yield self._points[i]

    def __repr__(self) -> str:
        return f"PathView(len={self._length})"


TrackObserver = Callable[[TripStats, PathView], None]


@dataclass(slots=True)
class RecordingSession:
    """Points and stats of one start/stop cycle."""

    started_ms: int
    stats: TripStats
    points: list[TrackPoint] = field(default_factory=list)
    stopped_ms: int | None = None

    @property
    def finalized(self) -> bool:
        return self.stopped_ms is not None

    def to_track(self) -> RecordedTrack:
        """Freeze the session into an exportable RecordedTrack."""

        stopped = self.stopped_ms if self.stopped_ms is not None else self.stats.last_update_ms
        return RecordedTrack(
            points=tuple(self.points),
            stats=self.stats,
            started_ms=self.started_ms,
            stopped_ms=stopped,
        )


class TrackRecorder:
    """Idle/Recording state machine that accumulates a path and trip stats."""

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self._cfg = config or RecorderConfig()
        self._state = RecorderState.IDLE
        self._session: RecordingSession | None = None
        self._last_track: RecordedTrack | None = None
        self._observers: list[TrackObserver] = []

    @property
    def config(self) -> RecorderConfig:
        return self._cfg

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    @property
    def session(self) -> RecordingSession | None:
        """Current or last finalized session (None before the first start)."""

        return self._session

    @property
    def stats(self) -> TripStats:
        if self._session is None:
            return TripStats()
        return self._session.stats

    @property
    def points(self) -> PathView:
        if self._session is None:
            return PathView([])
        return PathView(self._session.points)

    def subscribe(self, observer: TrackObserver) -> Callable[[], None]:
        """Register an observer called after every ingested sample.

        Returns:
            A callable that removes the observer again.
        """

        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def start(self) -> None:
        """Begin a new session, discarding any running or finalized one."""

        if self._state is RecorderState.RECORDING and self._session is not None:
            logger.info("Restarting recording; discarding %s unsaved points", len(self._session.points))
        started = self._cfg.clock()
        self._session = RecordingSession(started_ms=started, stats=TripStats(last_update_ms=started))
        self._last_track = None
        self._state = RecorderState.RECORDING
        logger.info("Recording started at %s", started)

    def ingest(self, sample: PositionSample) -> TripStats | None:
        """Feed one position sample.

        Returns:
            The updated stats, or None when the recorder is idle (sample ignored).
        """

        session = self._session
        if self._state is not RecorderState.RECORDING or session is None:
            logger.debug("Ignoring sample at %s: recorder is idle", sample.timestamp_ms)
            return None

        point = TrackPoint(longitude=sample.longitude, latitude=sample.latitude)
        prev = session.stats
        distance = prev.total_distance_m
        if session.points:
            distance += point_distance_m(session.points[-1], point)
        session.points.append(point)

        moving = prev.moving_time_s
        if sample.speed_mps is not None and sample.speed_mps > self._cfg.moving_speed_threshold_mps:
            moving += (sample.timestamp_ms - prev.last_update_ms) / 1000.0

        stats = replace(
            prev,
            current_speed_kmh=sample.speed_mps * MPS_TO_KMH if sample.speed_mps is not None else 0.0,
            total_distance_m=distance,
            elevation_m=sample.altitude_m if sample.altitude_m is not None else prev.elevation_m,
            moving_time_s=moving,
            last_update_ms=sample.timestamp_ms,
        )
        session.stats = stats

        if self._observers:
            view = PathView(session.points)
            for observer in list(self._observers):
                observer(stats, view)
        return stats

    def stop(self) -> RecordedTrack | None:
        """Finish the running session.

        Returns:
            The finalized track. When already idle, the last finalized track
            (or None if nothing was recorded yet).
        """

        if self._state is not RecorderState.RECORDING or self._session is None:
            return self._last_track

        self._session.stopped_ms = self._cfg.clock()
        self._state = RecorderState.IDLE
        self._last_track = self._session.to_track()
        logger.info(
            "Recording stopped: points=%s distance=%.1fm moving=%.1fs",
            len(self._last_track.points),
            self._last_track.stats.total_distance_m,
            self._last_track.stats.moving_time_s,
        )
        return self._last_track


def record_track(
    samples: Iterable[PositionSample],
    config: RecorderConfig | None = None,
    observer: TrackObserver | None = None,
) -> RecordedTrack:
    """Run one full start/ingest/stop cycle over a finite sample stream."""

    recorder = TrackRecorder(config)
    if observer is not None:
        recorder.subscribe(observer)
    recorder.start()
    for sample in samples:
        recorder.ingest(sample)
    track = recorder.stop()
    if track is None:
        raise RuntimeError("recorder returned no track after start")
    return track


def replay_clock(samples: Sequence[PositionSample]) -> Callable[[], int]:
    """Clock for offline replays: first sample time on start, last sample time on stop."""

    first = samples[0].timestamp_ms if samples else 0
    last = samples[-1].timestamp_ms if samples else 0
    marks = iter([first, last])
    return lambda: next(marks, last)
