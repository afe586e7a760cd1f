"""
Zoom → precision selection and precision metadata.

The map zoom level is continuous; geohash precision is discrete (1..9).
``select_precision`` walks an ascending threshold table and returns the
precision of the first row whose ``max_zoom`` is at or above the zoom.
Anything past the last row maps to the finest precision.

Cell sizes are approximate ground extents at mid latitudes, used for
labels only.  ``cell_size_m`` measures an actual decoded cell on the
WGS84 ellipsoid.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import pyproj

from .geohash import decode

MIN_PRECISION = 1
MAX_PRECISION = 9
PRECISIONS: List[int] = list(range(MIN_PRECISION, MAX_PRECISION + 1))

# (max_zoom, precision), ascending
ZOOM_PRECISION_MAP: List[Tuple[float, int]] = [
    (3, 1),
    (6, 2),
    (9, 3),
    (12, 4),
    (15, 5),
    (17, 6),
    (19, 7),
    (21, 8),
]

PRECISION_LABELS: Dict[int, str] = {
    1: "~5000 km",
    2: "~630 km",
    3: "~78 km",
    4: "~20 km",
    5: "~2.4 km",
    6: "~1.2 km",
    7: "~152 m",
    8: "~19 m",
    9: "~2.4 m",
}

_GEOD = pyproj.Geod(ellps="WGS84")


def select_precision(zoom: float) -> int:
    """Map a zoom level to a precision in 1..9 (non-decreasing in zoom)."""
    for max_zoom, precision in ZOOM_PRECISION_MAP:
        if zoom <= max_zoom:
            return precision
    return MAX_PRECISION


def clamp_precision(precision: int) -> int:
    return max(MIN_PRECISION, min(MAX_PRECISION, int(precision)))


def format_precision_label(precision: int) -> str:
    suffix = "" if precision == 1 else "s"
    return f"{precision} character{suffix}"


def format_distance(precision: int) -> str:
    label = PRECISION_LABELS.get(precision)
    if label is None:
        return "~unknown"
    return label.replace(" ", "")


def cell_size_m(geohash: str) -> Tuple[float, float]:
    """(width, height) of the decoded cell in metres.

    Width is measured along the cell's central parallel, height along its
    central meridian.
    """
    cell = decode(geohash)
    lat_lo, lat_hi = cell.lat_interval.low, cell.lat_interval.high
    lng_lo, lng_hi = cell.lng_interval.low, cell.lng_interval.high
    _, _, width = _GEOD.inv(lng_lo, cell.center_lat, lng_hi, cell.center_lat)
    _, _, height = _GEOD.inv(cell.center_lng, lat_lo, cell.center_lng, lat_hi)
    return abs(width), abs(height)


def format_cell_size(geohash: str) -> str:
    """Human-readable "W × H" size of a cell, in m or km."""
    if not geohash:
        return ""
    width, height = cell_size_m(geohash)

    def _fmt(metres: float) -> str:
        if metres >= 1000.0:
            return f"{metres / 1000.0:.1f} km"
        return f"{metres:.1f} m"

    return f"{_fmt(width)} × {_fmt(height)}"
