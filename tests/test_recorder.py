import math
from typing import Iterator

import pytest

from track_recorder.geo import haversine_m
from track_recorder.models import PositionSample, TripStats
from track_recorder.recorder import (
    PathView,
    RecorderConfig,
    RecorderState,
    TrackRecorder,
    record_track,
    replay_clock,
)


def _clock(*values: int):
    it: Iterator[int] = iter(values)
    return lambda: next(it)


def _sample(
    lat: float,
    lon: float,
    ts: int,
    *,
    speed: float | None = None,
    alt: float | None = None,
) -> PositionSample:
    return PositionSample(latitude=lat, longitude=lon, altitude_m=alt, speed_mps=speed, timestamp_ms=ts)


@pytest.fixture
def recorder() -> TrackRecorder:
    return TrackRecorder(RecorderConfig(clock=_clock(1_000, 60_000, 120_000, 180_000)))


def test_start_resets_stats_and_stamps_now(recorder: TrackRecorder) -> None:
    assert recorder.state is RecorderState.IDLE
    recorder.start()
    assert recorder.is_recording
    assert recorder.stats == TripStats(last_update_ms=1_000)
    assert len(recorder.points) == 0


def test_ingest_while_idle_is_ignored(recorder: TrackRecorder) -> None:
    assert recorder.ingest(_sample(1.0, 2.0, 5_000, speed=3.0)) is None
    assert len(recorder.points) == 0
    assert recorder.stats == TripStats()


def test_stationary_samples_accumulate_no_distance(recorder: TrackRecorder) -> None:
    recorder.start()
    for i in range(5):
        recorder.ingest(_sample(52.52, 13.40, 2_000 * (i + 1)))
    assert recorder.stats.total_distance_m == 0.0
    assert len(recorder.points) == 5


def test_distance_of_two_points(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(52.5200, 13.4050, 2_000))
    recorder.ingest(_sample(52.5210, 13.4060, 4_000))
    track = recorder.stop()
    assert track is not None
    assert track.stats.total_distance_m == haversine_m(52.5200, 13.4050, 52.5210, 13.4060)


def test_points_keep_lon_lat_in_insertion_order(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(2.0, 1.0, 2_000))
    recorder.ingest(_sample(4.0, 3.0, 4_000))
    assert [(p.longitude, p.latitude) for p in recorder.points] == [(1.0, 2.0), (3.0, 4.0)]


def test_second_start_discards_previous_session(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(0.0, 0.0, 2_000))
    recorder.ingest(_sample(0.0, 1.0, 4_000))
    recorder.start()
    assert len(recorder.points) == 0
    assert recorder.stats.total_distance_m == 0.0
    recorder.ingest(_sample(10.0, 10.0, 70_000))
    # no distance is bridged across the restart
    assert recorder.stats.total_distance_m == 0.0


def test_speed_conversion_and_missing_speed(recorder: TrackRecorder) -> None:
    recorder.start()
    stats = recorder.ingest(_sample(0.0, 0.0, 2_000, speed=2.0))
    assert stats is not None
    assert stats.current_speed_kmh == pytest.approx(7.2)
    stats = recorder.ingest(_sample(0.0, 0.0, 4_000))
    assert stats is not None
    assert stats.current_speed_kmh == 0.0


def test_elevation_keeps_last_reported_altitude(recorder: TrackRecorder) -> None:
    recorder.start()
    assert recorder.ingest(_sample(0.0, 0.0, 2_000)).elevation_m == 0.0
    assert recorder.ingest(_sample(0.0, 0.0, 3_000, alt=120.5)).elevation_m == 120.5
    assert recorder.ingest(_sample(0.0, 0.0, 4_000)).elevation_m == 120.5
    assert recorder.ingest(_sample(0.0, 0.0, 5_000, alt=0.0)).elevation_m == 0.0


def test_moving_time_only_counts_above_threshold(recorder: TrackRecorder) -> None:
    recorder.start()  # last_update = 1_000
    recorder.ingest(_sample(0.0, 0.0, 3_000, speed=1.0))
    assert recorder.stats.moving_time_s == pytest.approx(2.0)
    recorder.ingest(_sample(0.0, 0.0, 5_000, speed=0.5))
    assert recorder.stats.moving_time_s == pytest.approx(2.0)
    recorder.ingest(_sample(0.0, 0.0, 6_000))
    assert recorder.stats.moving_time_s == pytest.approx(2.0)
    recorder.ingest(_sample(0.0, 0.0, 9_000, speed=1.5))
    assert recorder.stats.moving_time_s == pytest.approx(3.0)
    assert recorder.stats.last_update_ms == 9_000


def test_custom_moving_threshold() -> None:
    rec = TrackRecorder(RecorderConfig(moving_speed_threshold_mps=2.0, clock=_clock(0, 10_000)))
    rec.start()
    rec.ingest(_sample(0.0, 0.0, 1_000, speed=1.5))
    rec.ingest(_sample(0.0, 0.0, 2_000, speed=2.5))
    assert rec.stats.moving_time_s == pytest.approx(1.0)


def test_stop_returns_finalized_track_and_keeps_data_readable(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(0.0, 0.0, 2_000, speed=1.0))
    recorder.ingest(_sample(0.0, 0.001, 4_000, speed=1.0))
    track = recorder.stop()
    assert track is not None
    assert recorder.state is RecorderState.IDLE
    assert track.started_ms == 1_000
    assert track.stopped_ms == 60_000
    assert track.duration_seconds == pytest.approx(59.0)
    assert len(track.points) == 2
    assert len(recorder.points) == 2
    assert recorder.stats == track.stats
    assert recorder.session is not None and recorder.session.finalized

    # later samples are ignored and stop is idempotent
    assert recorder.ingest(_sample(1.0, 1.0, 5_000)) is None
    assert recorder.stop() is track


def test_stop_before_any_session() -> None:
    assert TrackRecorder().stop() is None


def test_observers_receive_each_update(recorder: TrackRecorder) -> None:
    seen: list[tuple[TripStats, int]] = []
    unsubscribe = recorder.subscribe(lambda stats, path: seen.append((stats, len(path))))
    recorder.ingest(_sample(0.0, 0.0, 500))
    recorder.start()
    recorder.ingest(_sample(0.0, 0.0, 2_000))
    recorder.ingest(_sample(0.0, 1.0, 4_000))
    assert [n for _, n in seen] == [1, 2]
    assert seen[-1][0] is recorder.stats

    unsubscribe()
    recorder.ingest(_sample(0.0, 2.0, 6_000))
    assert len(seen) == 2


def test_path_view_is_a_stable_snapshot(recorder: TrackRecorder) -> None:
    views: list[PathView] = []
    recorder.subscribe(lambda stats, path: views.append(path))
    recorder.start()
    recorder.ingest(_sample(2.0, 1.0, 2_000))
    recorder.ingest(_sample(4.0, 3.0, 4_000))
    first = views[0]
    assert len(first) == 1
    assert list(first) == [recorder.points[0]]
    assert first[-1].longitude == 1.0
    assert first[:5] == [recorder.points[0]]
    with pytest.raises(IndexError):
        first[1]


def test_nan_coordinates_do_not_raise(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(0.0, 0.0, 2_000))
    stats = recorder.ingest(_sample(math.nan, 0.0, 4_000))
    assert stats is not None
    assert math.isnan(stats.total_distance_m)
    assert len(recorder.points) == 2


def test_out_of_order_timestamps_do_not_raise(recorder: TrackRecorder) -> None:
    recorder.start()
    recorder.ingest(_sample(0.0, 0.0, 10_000, speed=1.0))
    recorder.ingest(_sample(0.0, 0.0, 5_000, speed=1.0))
    assert recorder.stats.last_update_ms == 5_000


def test_record_track_replays_samples() -> None:
    samples = [
        _sample(0.0, 0.0, 1_000, speed=1.0, alt=10.0),
        _sample(0.0, 0.001, 3_000, speed=1.0),
        _sample(0.0, 0.002, 5_000, speed=0.2),
    ]
    calls: list[int] = []
    track = record_track(samples, RecorderConfig(clock=replay_clock(samples)), lambda s, p: calls.append(len(p)))
    assert calls == [1, 2, 3]
    assert track.started_ms == 1_000
    assert track.stopped_ms == 5_000
    assert track.stats.moving_time_s == pytest.approx(2.0)
    assert track.stats.elevation_m == 10.0
    assert track.stats.total_distance_m == pytest.approx(haversine_m(0, 0, 0, 0.002), rel=1e-9)


def test_replay_clock_on_empty_input() -> None:
    clock = replay_clock([])
    assert (clock(), clock(), clock()) == (0, 0, 0)


def test_record_track_raises_when_stop_yields_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(TrackRecorder, "stop", lambda self: None)
    with pytest.raises(RuntimeError):
        record_track([_sample(0.0, 0.0, 1_000)])
