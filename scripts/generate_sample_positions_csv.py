from __future__ import annotations

import argparse
import csv
import math
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Europe/Berlin"
M_PER_DEG_LAT: Final[float] = 111_195.0


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def generate_samples(
    *,
    rows: int,
    seed: int,
    start_local: datetime,
    lat: float,
    lon: float,
) -> list[dict[str, str]]:
    """Generate a fake walk: mostly moving, with pauses and GPS jitter."""

    rng = random.Random(seed)
    cur = start_local.replace(tzinfo=ZoneInfo(TZ))
    heading = rng.uniform(0, 2 * math.pi)
    altitude = rng.uniform(30, 400)

    out: list[dict[str, str]] = []
    paused_for = 0
    for _ in range(rows):
        cur = cur + timedelta(seconds=rng.uniform(1.5, 3.0))

        if paused_for == 0 and rng.random() < 0.04:
            paused_for = rng.randint(5, 20)
        if paused_for > 0:
            paused_for -= 1
            speed = rng.uniform(0.0, 0.4)
        else:
            speed = rng.uniform(1.0, 1.8)
            heading += rng.uniform(-0.3, 0.3)

        step_m = speed * 2.0
        lat += step_m * math.cos(heading) / M_PER_DEG_LAT
        lon += step_m * math.sin(heading) / (M_PER_DEG_LAT * math.cos(math.radians(lat)))
        altitude += rng.uniform(-0.5, 0.5)

        # Some devices drop altitude or report an unknown speed
        alt_text = "" if rng.random() < 0.05 else f"{altitude:.1f}"
        speed_text = "-1.0" if rng.random() < 0.03 else f"{speed:.2f}"

        out.append(
            {
                "timestamp": str(_epoch_ms(cur)),
                "latitude": f"{lat:.7f}",
                "longitude": f"{lon:.7f}",
                "altitude": alt_text,
                "speed": speed_text,
            }
        )
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake samples.csv for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/samples.csv", help="Output CSV path")
    p.add_argument("--rows", type=int, default=600, help="Number of rows")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--lat", type=float, default=52.520008, help="Start latitude")
    p.add_argument("--lon", type=float, default=13.404954, help="Start longitude")
    p.add_argument(
        "--start",
        type=str,
        default="2025-06-01 08:00:00",
        help=f"Start local time in {TZ}, e.g. '2025-06-01 08:00:00'",
    )
    args = p.parse_args()

    rows = generate_samples(
        rows=args.rows,
        seed=args.seed,
        start_local=datetime.fromisoformat(args.start),
        lat=args.lat,
        lon=args.lon,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["timestamp", "latitude", "longitude", "altitude", "speed"])
        w.writeheader()
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
