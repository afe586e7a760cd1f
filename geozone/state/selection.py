"""
Active selection — the one geohash both the detail panel and the map
overlay agree on.

Recomputed from scratch on every input change; never cached or merged.
An unready map (not loaded, or no live hash set yet) yields the sentinel
``ActiveSelection("", 0, mode)`` which consumers treat as "nothing to
show", not as an error.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from ..geo.geohash import encode
from ..geo.live_hash import Coordinate, LiveHashSet
from ..geo.precision import select_precision


class Mode(str, enum.Enum):
    """Which tab drives the active cell."""
    OPTIMAL = "optimal"
    FIXED = "fixed"

    @classmethod
    def parse(cls, value, default: Optional["Mode"] = None) -> "Mode":
        try:
            return cls(value)
        except ValueError:
            if default is None:
                raise
            return default


@dataclass(frozen=True)
class ActiveSelection:
    hash: str
    precision: int
    mode: Mode

    @property
    def is_unready(self) -> bool:
        return self.precision == 0 or not self.hash


def unready(mode: Mode) -> ActiveSelection:
    return ActiveSelection(hash="", precision=0, mode=mode)


def resolve_active_selection(
    mode: Mode,
    fixed_precision: int,
    center: Optional[Coordinate],
    zoom: float,
    map_loaded: bool,
    live: Optional[LiveHashSet] = None,
) -> ActiveSelection:
    """Compute the active (hash, precision, mode) triple.

    Optimal mode reads the live hash set at the zoom's precision.  Fixed
    mode re-encodes the current *center* directly, so a stale live hash
    set cannot leak into the user's fixed cell.
    """
    if not map_loaded or live is None:
        return unready(mode)

    if mode is Mode.OPTIMAL:
        precision = select_precision(zoom)
        return ActiveSelection(live.get(precision), precision, Mode.OPTIMAL)

    point = center if center is not None else live.center
    return ActiveSelection(
        encode(point.latitude, point.longitude, fixed_precision),
        fixed_precision,
        Mode.FIXED,
    )
