"""Persist exported GPX documents."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from track_recorder.gpx import gpx_filename

logger = logging.getLogger(__name__)


def write_gpx_file(gpx: str, out_dir: str | Path, created_at: datetime) -> Path:
    """Write a GPX document as ``track_<ISO>.gpx`` under out_dir.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written.
    """

    d = Path(out_dir)
    d.mkdir(parents=True, exist_ok=True)
    path = d / gpx_filename(created_at)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(gpx, encoding="utf-8")
    tmp.replace(path)
    logger.info("Wrote %s (%s bytes)", path, len(gpx.encode("utf-8")))
    return path
