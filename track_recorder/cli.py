"""Command-line interface for track_recorder.

Run:
    python -m track_recorder record --csv samples.csv --out-dir tracks
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import UTC, datetime

from track_recorder.csv_io import WatchOptions, filter_watch, load_position_samples
from track_recorder.formatting import stats_panel
from track_recorder.gpx import serialize_gpx
from track_recorder.models import DEFAULT_CREATOR, DEFAULT_MOVING_SPEED_MPS, DEFAULT_TZ, PositionSample
from track_recorder.recorder import RecorderConfig, record_track, replay_clock
from track_recorder.storage import write_gpx_file
from track_recorder.timeutils import delta_stats, dt_from_epoch_ms

logger = logging.getLogger(__name__)


def _watch_options(args: argparse.Namespace) -> WatchOptions:
    if args.no_filter:
        return WatchOptions.unfiltered()
    return WatchOptions(time_interval_ms=args.time_interval_ms, distance_interval_m=args.distance_interval_m)


def _load_delivered(args: argparse.Namespace) -> list[PositionSample]:
    samples, summary = load_position_samples(args.csv, args.tz)
    delivered = list(filter_watch(samples, _watch_options(args)))
    logger.info(
        "Loaded %s rows (parsed=%s, skipped=%s); %s samples delivered after filtering",
        summary.rows_total,
        summary.rows_parsed,
        summary.rows_skipped,
        len(delivered),
    )
    return delivered


def _replay_config(samples: list[PositionSample], threshold: float) -> RecorderConfig:
    return RecorderConfig(moving_speed_threshold_mps=threshold, clock=replay_clock(samples))


def _print_panel(panel: dict[str, str]) -> None:
    print("### Trip")
    for label, text in panel.items():
        print(f"{label}: {text}")
    print()


def _cmd_record(args: argparse.Namespace) -> int:
    samples = _load_delivered(args)
    track = record_track(samples, _replay_config(samples, args.moving_threshold))
    _print_panel(stats_panel(track.stats))

    if not track.points:
        print("No points recorded; nothing to export.", file=sys.stderr)
        return 0

    created_at = datetime.now(UTC)
    gpx = serialize_gpx(track.points, created_at, creator=args.creator)
    path = write_gpx_file(gpx, args.out_dir, created_at)
    if args.print_gpx:
        print(gpx)
    print(f"Exported: {path} (points={len(track.points)})")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    samples = _load_delivered(args)
    track = record_track(samples, _replay_config(samples, args.moving_threshold))
    panel = stats_panel(track.stats)
    _print_panel(panel)

    if samples:
        start = dt_from_epoch_ms(samples[0].timestamp_ms, args.tz)
        end = dt_from_epoch_ms(samples[-1].timestamp_ms, args.tz)
        print("### Time range")
        print(f"start={start.isoformat(sep=' ')}, end={end.isoformat(sep=' ')}")
        print()

    delta = delta_stats(sorted(s.timestamp_ms for s in samples))
    if delta is not None:
        print("### Sampling interval (seconds)")
        print(
            f"count={delta.count}, min={delta.min_s:.3f}, median={delta.median_s:.3f}, "
            f"p95={delta.p95_s:.3f}, max={delta.max_s:.3f}"
        )
        print()

    if args.json:
        payload = {
            "points": len(track.points),
            "stats": asdict(track.stats),
            "panel": panel,
            "sampling": asdict(delta) if delta is not None else None,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _add_replay_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=str, default="samples.csv", help="Input samples CSV")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help="Time zone (IANA) for naive timestamps")
    p.add_argument(
        "--moving-threshold",
        type=float,
        default=DEFAULT_MOVING_SPEED_MPS,
        help="Speed (m/s) above which time counts as moving",
    )
    p.add_argument("--time-interval-ms", type=int, default=2000, help="Minimum time between delivered samples")
    p.add_argument("--distance-interval-m", type=float, default=5.0, help="Minimum distance between delivered samples")
    p.add_argument("--no-filter", action="store_true", help="Deliver every CSV row to the recorder")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="track_recorder")
    p.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_rec = sub.add_parser("record", help="Replay samples through the recorder and export a GPX track")
    _add_replay_args(p_rec)
    p_rec.add_argument("--out-dir", type=str, default="tracks", help="Directory for the GPX file")
    p_rec.add_argument("--creator", type=str, default=DEFAULT_CREATOR, help="GPX creator attribute")
    p_rec.add_argument("--print-gpx", action="store_true", help="Also print the GPX document")
    p_rec.set_defaults(func=_cmd_record)

    p_st = sub.add_parser("stats", help="Replay samples and print trip statistics only")
    _add_replay_args(p_st)
    p_st.add_argument("--json", action="store_true", help="Also print a JSON payload")
    p_st.set_defaults(func=_cmd_stats)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except (OSError, KeyError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
