"""GPX 1.1 serialization of a recorded path.

The layout is fixed (one line per trkpt, two-space indentation), so the
document is built from text chunks rather than through an XML tree.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Iterable
from xml.sax.saxutils import quoteattr

from track_recorder.models import DEFAULT_CREATOR, TrackPoint
from track_recorder.timeutils import iso8601_utc


def format_coord(value: float) -> str:
    """Render a coordinate as the shortest decimal that round-trips.

    Integral values drop the fractional part ("2" rather than "2.0").
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(float(value))
    if "e" in text:
        # GPX coordinates are xsd:decimal, which has no exponent form
        return format(Decimal(text), "f")
    return text


def serialize_gpx(
    points: Iterable[TrackPoint],
    created_at: datetime,
    creator: str = DEFAULT_CREATOR,
) -> str:
    """Build a GPX document with a single track segment.

    Args:
        points: Track points in recording order.
        created_at: Export time; used for metadata/time and the track name.
        creator: Value of the gpx creator attribute.

    Returns:
        The GPX document as text.
    """

    stamp = iso8601_utc(created_at)
    trkpts = [f'    <trkpt lat="{format_coord(p.latitude)}" lon="{format_coord(p.longitude)}"></trkpt>' for p in points]

    chunks = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator={quoteattr(creator)}>',
        f"  <metadata><time>{stamp}</time></metadata>",
    ]
    if trkpts:
        chunks.append(f"  <trk><name>Track {stamp}</name><trkseg>")
        chunks.extend(trkpts)
        chunks.append("  </trkseg></trk>")
    else:
        chunks.append(f"  <trk><name>Track {stamp}</name><trkseg></trkseg></trk>")
    chunks.append("</gpx>")
    return "\n".join(chunks) + "\n"


def gpx_filename(created_at: datetime) -> str:
    """File name for an exported track, e.g. "track_2025-06-01T09-30-00.000Z.gpx"."""

    return f"track_{iso8601_utc(created_at).replace(':', '-')}.gpx"
