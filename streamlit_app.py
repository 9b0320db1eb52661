from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import streamlit as st

from track_recorder.csv_io import WatchOptions, filter_watch, load_position_samples
from track_recorder.formatting import stats_panel
from track_recorder.geo import path_bounds
from track_recorder.gpx import gpx_filename, serialize_gpx
from track_recorder.models import DEFAULT_CREATOR, DEFAULT_MOVING_SPEED_MPS, DEFAULT_TZ, PositionSample, RecordedTrack
from track_recorder.recorder import RecorderConfig, record_track, replay_clock


@st.cache_data(show_spinner=False)
def _load_samples(path_csv: str, tz_name: str, mtime: float) -> list[PositionSample]:
    _ = mtime  # part of cache key so updated files reload automatically
    samples, _summary = load_position_samples(path_csv, tz_name)
    return samples


def _replay(samples: list[PositionSample], threshold: float) -> RecordedTrack:
    return record_track(samples, RecorderConfig(moving_speed_threshold_mps=threshold, clock=replay_clock(samples)))


def main() -> None:
    st.set_page_config(page_title="Track preview", layout="wide")
    st.title("Track preview")

    with st.sidebar:
        st.subheader("Samples")
        tz_name = st.text_input("Time zone (IANA)", value=DEFAULT_TZ)
        path_csv = st.text_input("samples.csv path", value="samples.csv")

        st.subheader("Location watch")
        use_filter = st.checkbox("Apply watch filter", value=True)
        time_interval_ms = st.number_input("time_interval_ms", value=2000, step=500)
        distance_interval_m = st.number_input("distance_interval_m", value=5.0, step=1.0)

        with st.expander("Advanced", expanded=False):
            threshold = st.number_input("Moving threshold (m/s)", value=DEFAULT_MOVING_SPEED_MPS, step=0.1)
            creator = st.text_input("GPX creator", value=DEFAULT_CREATOR)

    p = Path(path_csv)
    if not p.exists():
        st.error(f"File not found: {path_csv!r}")
        return

    try:
        samples = _load_samples(path_csv, tz_name, p.stat().st_mtime)
    except (KeyError, ValueError) as exc:
        st.exception(exc)
        return

    if use_filter:
        options = WatchOptions(time_interval_ms=int(time_interval_ms), distance_interval_m=float(distance_interval_m))
    else:
        options = WatchOptions.unfiltered()
    delivered = list(filter_watch(samples, options))
    track = _replay(delivered, float(threshold))

    st.subheader("Trip")
    cols = st.columns(4)
    for col, (label, text) in zip(cols, stats_panel(track.stats).items()):
        col.metric(label, text)
    st.caption(f"{len(samples)} samples in file, {len(delivered)} delivered, {len(track.points)} points recorded")

    if not track.points:
        st.info("No points recorded.")
        return

    st.subheader("Path")
    st.map([{"lat": pt.latitude, "lon": pt.longitude} for pt in track.points])
    bounds = path_bounds(track.points)
    if bounds is not None:
        st.caption(
            f"SW=({bounds.min_lat:.6f}, {bounds.min_lon:.6f}) NE=({bounds.max_lat:.6f}, {bounds.max_lon:.6f})"
        )

    created_at = datetime.now(UTC)
    gpx = serialize_gpx(track.points, created_at, creator=creator)
    st.subheader("GPX")
    st.download_button("Download GPX", data=gpx, file_name=gpx_filename(created_at), mime="application/gpx+xml")
    st.code(gpx, language="xml")


if __name__ == "__main__":
    main()
